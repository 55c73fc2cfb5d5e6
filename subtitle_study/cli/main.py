"""Main CLI entry point for subtitle_study."""

import argparse
import logging
import sys

from subtitle_study import __version__
from subtitle_study.cli.commands import rank, stats, study
from subtitle_study.models import (
    FocusMode,
    LineSelectionStrategy,
    StudyIntensity,
    TokenBlankingStrategy,
)


def _choices(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to a JSON settings file (default: ~/.subtitle_study/config.json)")
    parser.add_argument("--db", help="Path to the study database")


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="subtitle_study",
        description="Fill-in-the-blank Japanese study tests inside subtitle playback",
        epilog="Use 'subtitle_study <command> --help' for command-specific help",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # subtitle_study study <subtitle>
    study_parser = subparsers.add_parser(
        "study",
        help="Play through a subtitle file with study tests",
        description="Walk through subtitle lines and answer fill-in-the-blank tests as they come up",
    )
    study_parser.add_argument("subtitle", help="Path to subtitle file (.ass, .srt, .ssa)")
    _add_common_options(study_parser)
    study_parser.add_argument("--video-src", help="Identity of the media (default: subtitle path)")
    study_parser.add_argument("--frequency", type=int, help="Test every Nth line (cadence selection)")
    study_parser.add_argument("--line-selection", choices=_choices(LineSelectionStrategy))
    study_parser.add_argument("--token-selection", choices=_choices(TokenBlankingStrategy))
    study_parser.add_argument("--intensity", choices=_choices(StudyIntensity))
    study_parser.add_argument("--focus-mode", choices=_choices(FocusMode))
    study_parser.add_argument("--max-blanks", type=int, help="Maximum blanks per test")
    study_parser.add_argument("--rate-limit", type=float, help="Minimum seconds between tests")
    study_parser.add_argument(
        "--deck",
        action="append",
        help="Anki deck with known vocabulary, as NAME or NAME=FIELD (repeatable)",
    )
    study_parser.add_argument("--ankiconnect-url", help="AnkiConnect endpoint")
    study_parser.add_argument(
        "--no-conjugations",
        action="store_true",
        help="Blank conjugation pieces separately instead of whole inflected words",
    )
    study_parser.add_argument("--no-track", action="store_true", help="Don't record answers")
    study_parser.add_argument(
        "--offset",
        type=float,
        default=0.0,
        help="Subtitle timing offset in seconds (negative = earlier, positive = later)",
    )
    study_parser.add_argument("--save-config", action="store_true", help="Save these settings as the defaults")

    # subtitle_study rank <subtitle>
    rank_parser = subparsers.add_parser(
        "rank",
        help="List the lines most worth studying",
        description="Score every line against your Anki decks and list the highest first",
    )
    rank_parser.add_argument("subtitle", help="Path to subtitle file (.ass, .srt, .ssa)")
    _add_common_options(rank_parser)
    rank_parser.add_argument("--deck", action="append", help="Anki deck as NAME or NAME=FIELD (repeatable)")
    rank_parser.add_argument("--focus-mode", choices=_choices(FocusMode))
    rank_parser.add_argument("--limit", type=int, default=20, help="Number of lines to show")

    # subtitle_study stats <lemma>
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show study history for a word",
        description="Show answer and recognition statistics for a dictionary form",
    )
    stats_parser.add_argument("lemma", help="Dictionary form of the word")
    _add_common_options(stats_parser)
    stats_parser.add_argument("--recent", type=int, default=0, help="Also list the N most recent answers")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Dispatch to appropriate command
    if args.command == "study":
        return study.study_command(args)
    elif args.command == "rank":
        return rank.rank_command(args)
    elif args.command == "stats":
        return stats.stats_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
