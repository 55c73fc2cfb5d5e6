"""Orchestration for coordinating study mode services."""

from .service_factory import StudyServices, create_services
from .study_mode_engine import (
    NO_TOKENIZER_MESSAGE,
    TOKENIZE_FAILED_MESSAGE,
    StudyModeEngine,
)

__all__ = [
    "StudyModeEngine",
    "StudyServices",
    "create_services",
    "NO_TOKENIZER_MESSAGE",
    "TOKENIZE_FAILED_MESSAGE",
]
