"""Data models for Subtitle Study."""

from .display import (
    ContinueIntent,
    DismissIntent,
    EngineState,
    InputChangeIntent,
    OverlayIntent,
    ReplayIntent,
    StudyTestDisplayState,
    SubmitIntent,
)
from .knowledge import (
    INTENSITY_THRESHOLDS,
    FocusMode,
    KnowledgeStatus,
    LineAssessment,
    PriorityResult,
    RecognitionAttempt,
    RecognitionStats,
    StudyDeckConfig,
    StudyIntensity,
    StudyRecord,
    StudyStats,
)
from .session import (
    LineSelectionStrategy,
    LineStatus,
    LineTestInfo,
    TokenBlankingStrategy,
    VideoSession,
)
from .token import SubtitleLine, TokenizerType, TokenPart, WordType, flatten_token_groups

__all__ = [
    "TokenPart",
    "WordType",
    "TokenizerType",
    "SubtitleLine",
    "flatten_token_groups",
    "KnowledgeStatus",
    "FocusMode",
    "StudyIntensity",
    "INTENSITY_THRESHOLDS",
    "PriorityResult",
    "LineAssessment",
    "StudyDeckConfig",
    "RecognitionStats",
    "RecognitionAttempt",
    "StudyRecord",
    "StudyStats",
    "LineStatus",
    "LineTestInfo",
    "VideoSession",
    "LineSelectionStrategy",
    "TokenBlankingStrategy",
    "EngineState",
    "StudyTestDisplayState",
    "OverlayIntent",
    "ReplayIntent",
    "SubmitIntent",
    "ContinueIntent",
    "InputChangeIntent",
    "DismissIntent",
]
