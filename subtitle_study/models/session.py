"""Data models for per-video study session state."""

from dataclasses import dataclass, field
from enum import Enum

from .token import TokenPart


class LineStatus(str, Enum):
    """Outcome of a tested subtitle line."""

    PASS = "pass"
    FAIL = "fail"
    INCOMPLETE = "incomplete"


class LineSelectionStrategy(str, Enum):
    """How lines are chosen for testing."""

    RANDOM = "random"  # Fixed cadence: every Nth line
    PRIORITIZE_UNKNOWN = "prioritize_unknown"  # Knowledge-driven scoring


class TokenBlankingStrategy(str, Enum):
    """How tokens within a tested line are chosen for blanking."""

    RANDOM = "random"
    PRIORITIZE_UNKNOWN = "prioritize_unknown"


@dataclass(frozen=True)
class LineTestInfo:
    """Cached test for one subtitle line.

    Tokens and blanked indices are kept so that revisiting the line (e.g.
    after a rewind) shows the same test instead of a new random one.
    """

    subtitle_index: int
    status: LineStatus
    tokens: tuple[TokenPart, ...] = ()
    blanked_indices: tuple[int, ...] = ()

    @property
    def is_complete(self) -> bool:
        return self.status is not LineStatus.INCOMPLETE


@dataclass
class VideoSession:
    """Already-studied bookkeeping for one continuous viewing of a video."""

    video_src: str
    studied_line_indices: set[int] = field(default_factory=set)
    cards_shown_count: int = 0
    last_card_time: float = 0.0  # Clock seconds of the most recent card
