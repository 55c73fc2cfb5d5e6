"""Interface protocols for Subtitle Study."""

from .host import HostPlayer
from .knowledge import KnowledgeGetter, RecognitionRepository, StudyRepository
from .overlay import IntentHandler, StudyOverlay
from .tokenizer import Tokenizer

__all__ = [
    "Tokenizer",
    "KnowledgeGetter",
    "StudyRepository",
    "RecognitionRepository",
    "HostPlayer",
    "StudyOverlay",
    "IntentHandler",
]
