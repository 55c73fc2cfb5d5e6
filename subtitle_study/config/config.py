"""Configuration classes for Subtitle Study."""

from dataclasses import dataclass, field
from pathlib import Path

from subtitle_study.exceptions import ConfigError
from subtitle_study.models import (
    FocusMode,
    LineSelectionStrategy,
    StudyDeckConfig,
    StudyIntensity,
    TokenBlankingStrategy,
    TokenizerType,
)


@dataclass(frozen=True)
class StudyModeConfig:
    """Immutable configuration for study mode.

    The engine copies the values it needs when settings are applied, so a
    config instance can be shared freely between components.
    """

    # Scheduling
    enabled: bool = False
    frequency: int = 10  # Cadence strategy: test every Nth line
    line_selection: LineSelectionStrategy = LineSelectionStrategy.RANDOM
    intensity: StudyIntensity = StudyIntensity.MEDIUM
    rate_limit_seconds: float = 10.0  # Minimum gap between knowledge-driven cards

    # Blanking
    token_selection: TokenBlankingStrategy = TokenBlankingStrategy.RANDOM
    include_conjugations: bool = True
    max_blanks: int = 3

    # Knowledge sources
    study_decks: tuple[StudyDeckConfig, ...] = ()
    focus_mode: FocusMode = FocusMode.BALANCED
    ankiconnect_url: str = "http://127.0.0.1:8765"

    # Result tracking
    track_results: bool = True
    study_db_path: Path = field(
        default_factory=lambda: Path.home() / ".subtitle_study" / "study.db"
    )

    # Tokenizer and playback
    tokenizer_type: TokenizerType = TokenizerType.FUGASHI
    playback_poll_interval: float = 0.05  # Seconds between end-of-line checks

    def __post_init__(self):
        """Coerce plain values (e.g. loaded from JSON) and validate ranges."""
        try:
            object.__setattr__(self, "line_selection", LineSelectionStrategy(self.line_selection))
            object.__setattr__(self, "token_selection", TokenBlankingStrategy(self.token_selection))
            object.__setattr__(self, "intensity", StudyIntensity(self.intensity))
            object.__setattr__(self, "focus_mode", FocusMode(self.focus_mode))
            object.__setattr__(self, "tokenizer_type", TokenizerType(self.tokenizer_type))
        except ValueError as e:
            raise ConfigError(f"Invalid study mode setting: {e}") from e

        if isinstance(self.study_db_path, str):
            object.__setattr__(self, "study_db_path", Path(self.study_db_path))

        decks = tuple(
            deck if isinstance(deck, StudyDeckConfig) else StudyDeckConfig(**deck)
            for deck in self.study_decks
        )
        object.__setattr__(self, "study_decks", decks)

        if self.frequency < 1:
            raise ConfigError(f"frequency must be at least 1, got {self.frequency}")
        if self.max_blanks < 1:
            raise ConfigError(f"max_blanks must be at least 1, got {self.max_blanks}")
        if self.rate_limit_seconds < 0:
            raise ConfigError(f"rate_limit_seconds cannot be negative, got {self.rate_limit_seconds}")

    @property
    def enabled_decks(self) -> list[StudyDeckConfig]:
        """Decks that count as known vocabulary."""
        return [deck for deck in self.study_decks if deck.enabled]

    @property
    def uses_knowledge(self) -> bool:
        """Check if any selection strategy consults deck knowledge."""
        return (
            self.line_selection is LineSelectionStrategy.PRIORITIZE_UNKNOWN
            or self.token_selection is TokenBlankingStrategy.PRIORITIZE_UNKNOWN
        )
