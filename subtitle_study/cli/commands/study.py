"""CLI command for an interactive study session over a subtitle file."""

import asyncio
import logging
from pathlib import Path

from subtitle_study.config import StudyModeConfig
from subtitle_study.config.manager import ConfigManager
from subtitle_study.exceptions import StudyModeException, TokenizerUnavailableError
from subtitle_study.models import StudyDeckConfig, SubtitleLine
from subtitle_study.orchestration import (
    NO_TOKENIZER_MESSAGE,
    TOKENIZE_FAILED_MESSAGE,
    StudyModeEngine,
    create_services,
)
from subtitle_study.presenters import ConsolePresenter, ConsoleStudyOverlay
from subtitle_study.services import SubtitleLoader, create_tokenizer

logger = logging.getLogger(__name__)

NOTIFICATION_TEXT = {
    NO_TOKENIZER_MESSAGE: "Tokenizer not available, cannot build a study test",
    TOKENIZE_FAILED_MESSAGE: "Could not tokenize this line",
}


class SimulatedPlayer:
    """Host player that walks through subtitle lines without real media.

    Playback time only moves when the session advances to the next line or a
    line is replayed, so ``clock`` measures playback time rather than wall time.
    """

    def __init__(self, video_src: str, lines: list[SubtitleLine], presenter: ConsolePresenter):
        self._video_src = video_src
        self._lines = lines
        self._presenter = presenter
        self._seeked = False
        self.current_time = 0.0
        self.elapsed = 0.0
        self.paused = False
        self.subtitles_hidden = False
        self.overlays_hidden = False

    @property
    def video_src(self) -> str:
        return self._video_src

    def clock(self) -> float:
        return self.elapsed

    def advance_to(self, seconds: float) -> None:
        """Play forward to a position."""
        if seconds > self.current_time:
            self.elapsed += seconds - self.current_time
        self.current_time = seconds

    def play(self) -> None:
        self.paused = False
        if not self._seeked:
            return
        self._seeked = False
        line = self._line_at(self.current_time)
        if line is not None:
            self._presenter.show_info(f"  (replay) {line.text}")
            self.advance_to(line.end)

    def pause(self) -> None:
        self.paused = True

    def seek(self, seconds: float) -> None:
        self.current_time = max(0.0, seconds)
        self._seeked = True

    def set_subtitles_hidden(self, hidden: bool) -> None:
        self.subtitles_hidden = hidden

    def set_overlays_hidden(self, hidden: bool) -> None:
        self.overlays_hidden = hidden

    def notify(self, message_key: str) -> None:
        self._presenter.show_warning(NOTIFICATION_TEXT.get(message_key, message_key))

    def _line_at(self, seconds: float) -> SubtitleLine | None:
        for line in self._lines:
            if line.start <= seconds < line.end:
                return line
        return None


def parse_deck(value: str) -> StudyDeckConfig:
    """Parse a NAME or NAME=FIELD deck argument."""
    name, _, field = value.partition("=")
    if field:
        return StudyDeckConfig(deck_name=name.strip(), word_field=field.strip())
    return StudyDeckConfig(deck_name=name.strip())


def build_overrides(args) -> dict:
    """Collect configuration values given on the command line.

    Args:
        args: Parsed command-line arguments

    Returns:
        Keyword overrides for StudyModeConfig
    """
    overrides = {"enabled": True}
    option_names = {
        "frequency": "frequency",
        "line_selection": "line_selection",
        "token_selection": "token_selection",
        "intensity": "intensity",
        "focus_mode": "focus_mode",
        "max_blanks": "max_blanks",
        "rate_limit": "rate_limit_seconds",
        "ankiconnect_url": "ankiconnect_url",
        "db": "study_db_path",
    }
    for arg_name, config_name in option_names.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            overrides[config_name] = value

    if args.deck:
        overrides["study_decks"] = tuple(parse_deck(deck) for deck in args.deck)
    if args.no_conjugations:
        overrides["include_conjugations"] = False
    if args.no_track:
        overrides["track_results"] = False
    return overrides


def study_command(args) -> int:
    """Execute the study subcommand.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 = success, 1 = failure)
    """
    presenter = ConsolePresenter()

    presenter.show_info("Subtitle Study - In-video study mode")
    presenter.show_info("=" * 50)

    subtitle_file = Path(args.subtitle)
    if not subtitle_file.exists():
        presenter.show_error(f"Subtitle file not found: {subtitle_file}")
        return 1

    config_manager = ConfigManager(Path(args.config)) if args.config else ConfigManager()

    try:
        config = config_manager.load_config(**build_overrides(args))
        if args.save_config:
            config_manager.save_config(config)
            presenter.show_success(f"Settings saved to {config_manager.config_file}")

        lines = SubtitleLoader(offset=args.offset).load(subtitle_file)
        if not lines:
            presenter.show_error("No subtitle lines found")
            return 1

        presenter.show_info(f"Loaded {len(lines)} lines from {subtitle_file.name}")
        return asyncio.run(run_session(config, lines, args.video_src or str(subtitle_file), presenter))

    except StudyModeException as e:
        presenter.show_error(f"Error: {e}")
        return 1
    except (KeyboardInterrupt, EOFError):
        presenter.show_warning("Session interrupted")
        return 1
    except Exception as e:
        presenter.show_error(f"Unexpected error: {e}")
        return 1


async def run_session(
    config: StudyModeConfig,
    lines: list[SubtitleLine],
    video_src: str,
    presenter: ConsolePresenter,
    overlay: ConsoleStudyOverlay | None = None,
) -> int:
    """Play through subtitle lines, stopping for tests.

    Returns:
        Exit code
    """
    try:
        tokenizer = await create_tokenizer(config.tokenizer_type)
    except TokenizerUnavailableError as e:
        presenter.show_warning(f"Tokenizer unavailable, retrying when a test is due: {e}")
        tokenizer = None

    # Anki lookups follow the engine's current decks
    services = create_services(config, decks=lambda: engine.config.study_decks)
    player = SimulatedPlayer(video_src, lines, presenter)
    overlay = overlay or ConsoleStudyOverlay()

    engine = StudyModeEngine(
        config,
        host=player,
        overlay=overlay,
        tokenizer=tokenizer,
        tokenizer_factory=lambda: create_tokenizer(config.tokenizer_type),
        study_repository=services.study_repository,
        recognition_repository=services.recognition_repository,
        knowledge_getter=services.knowledge_getter,
        clock=player.clock,
    )

    outcomes: list[bool] = []
    engine.on_test_complete = outcomes.append
    engine.on_line_assessed = presenter.show_line_assessment
    engine.bind()

    presenter.show_info(f"Study mode: {engine.indicator_mode} ({config.line_selection.value})\n")

    try:
        for line in lines:
            player.advance_to(line.start)
            if not await engine.on_subtitle_shown(line):
                presenter.show_subtitle(line)
            player.advance_to(line.end)

            if engine.showing:
                await overlay.run_interaction()
    finally:
        engine.unbind()
        await engine.drain()
        if engine.tokenizer is not None:
            engine.tokenizer.dispose()

    presenter.show_session_summary(tested=len(outcomes), passed=sum(outcomes), lines=len(lines))
    return 0
