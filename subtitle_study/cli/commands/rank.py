"""CLI command for ranking subtitle lines by study priority."""

import asyncio
from pathlib import Path

from subtitle_study.cli.commands.study import parse_deck
from subtitle_study.config.manager import ConfigManager
from subtitle_study.exceptions import StudyModeException
from subtitle_study.models import LineSelectionStrategy, SubtitleLine, flatten_token_groups
from subtitle_study.orchestration import create_services
from subtitle_study.presenters import ConsolePresenter
from subtitle_study.services import LineSelector, PriorityCalculator, SubtitleLoader, create_tokenizer


def rank_command(args) -> int:
    """Execute the rank subcommand.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 = success, 1 = failure)
    """
    presenter = ConsolePresenter()

    subtitle_file = Path(args.subtitle)
    if not subtitle_file.exists():
        presenter.show_error(f"Subtitle file not found: {subtitle_file}")
        return 1

    config_manager = ConfigManager(Path(args.config)) if args.config else ConfigManager()
    overrides = {"line_selection": LineSelectionStrategy.PRIORITIZE_UNKNOWN}
    if args.deck:
        overrides["study_decks"] = tuple(parse_deck(deck) for deck in args.deck)
    if args.db:
        overrides["study_db_path"] = args.db
    if args.focus_mode:
        overrides["focus_mode"] = args.focus_mode

    try:
        config = config_manager.load_config(**overrides)
        if not config.enabled_decks:
            presenter.show_error("Ranking needs at least one study deck (--deck NAME[=FIELD])")
            return 1

        lines = SubtitleLoader().load(subtitle_file)
        ranking = asyncio.run(_rank(config, lines))
    except StudyModeException as e:
        presenter.show_error(f"Error: {e}")
        return 1

    presenter.show_ranked_lines(lines, ranking, args.limit)
    return 0


async def _rank(config, lines: list[SubtitleLine]) -> list[tuple[int, float]]:
    tokenizer = await create_tokenizer(config.tokenizer_type)
    try:
        services = create_services(config)
        selector = LineSelector(
            services.knowledge_getter,
            recognition_repository=services.recognition_repository,
            calculator=PriorityCalculator(config.focus_mode),
        )
        tokens_per_line = [flatten_token_groups(await tokenizer.tokenize(line.text)) for line in lines]
        return await selector.rank_lines(tokens_per_line)
    finally:
        tokenizer.dispose()
