"""Data models for knowledge status and priority scoring."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class KnowledgeStatus(str, Enum):
    """How well a lemma is known, ordered from least to most familiar."""

    UNCOLLECTED = "uncollected"
    NEW = "new"
    LEARNING = "learning"
    YOUNG = "young"
    MATURE = "mature"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    @classmethod
    def best(cls, statuses) -> "KnowledgeStatus":
        """Return the most familiar status, or UNCOLLECTED for an empty iterable."""
        return max(statuses, key=lambda s: s.rank, default=cls.UNCOLLECTED)


_STATUS_ORDER = [
    KnowledgeStatus.UNCOLLECTED,
    KnowledgeStatus.NEW,
    KnowledgeStatus.LEARNING,
    KnowledgeStatus.YOUNG,
    KnowledgeStatus.MATURE,
]


class FocusMode(str, Enum):
    """Weighting policy between deck knowledge and recognition history."""

    BALANCED = "balanced"
    PRIORITIZE_NEW = "prioritize_new"  # Breadth: favor words never collected
    PRIORITIZE_WEAK = "prioritize_weak"  # Depth: favor words often missed


class StudyIntensity(str, Enum):
    """How aggressively knowledge-driven testing triggers."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Minimum summed line priority needed to trigger a test
INTENSITY_THRESHOLDS: dict[StudyIntensity, float] = {
    StudyIntensity.LOW: 4.0,
    StudyIntensity.MEDIUM: 2.5,
    StudyIntensity.HIGH: 1.5,
}


@dataclass(frozen=True)
class PriorityResult:
    """Priority of one lemma for testing. Higher means more worth testing."""

    lemma: str
    knowledge_status: KnowledgeStatus
    knowledge_priority: float
    recognition_priority: float
    final_priority: float


@dataclass(frozen=True)
class LineAssessment:
    """Inputs and outcome of a knowledge-driven line decision."""

    score: float
    threshold: float
    token_count: int
    triggered: bool


@dataclass(frozen=True)
class StudyDeckConfig:
    """An Anki deck whose cards count as the learner's known vocabulary."""

    deck_name: str
    word_field: str = "Expression"
    enabled: bool = True


@dataclass
class RecognitionStats:
    """Aggregated recognition history for a lemma."""

    lemma: str
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    consecutive_successes: int = 0
    last_attempt_at: datetime | None = None

    @property
    def failure_rate(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.failures / self.attempts

    @property
    def last_attempt_failed(self) -> bool:
        return self.attempts > 0 and self.consecutive_successes == 0


@dataclass(frozen=True)
class RecognitionAttempt:
    """A single recognition result queued for batch recording."""

    lemma: str
    reading: str
    success: bool


@dataclass(frozen=True)
class StudyRecord:
    """A logged answer to one blank of a study test."""

    lemma: str
    reading: str
    surface_form: str
    correct: bool
    timestamp: datetime = field(default_factory=datetime.now)
    sentence_context: str = ""
    media_source: str = ""

    @property
    def result(self) -> str:
        return "correct" if self.correct else "incorrect"


@dataclass
class StudyStats:
    """Aggregated local study results for a lemma."""

    lemma: str
    total_attempts: int = 0
    correct: int = 0
    incorrect: int = 0
    last_studied: datetime | None = None

    @property
    def accuracy(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return self.correct / self.total_attempts
