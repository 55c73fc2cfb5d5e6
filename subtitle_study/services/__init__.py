"""Business logic services for Subtitle Study."""

from .anki_service import AnkiService, get_anki_status
from .answer_validator import AnswerValidator
from .knowledge_getter import CombinedKnowledgeGetter, create_knowledge_getter
from .line_selector import LineSelector
from .priority_calculator import PriorityCalculator
from .recognition_repository import SQLiteRecognitionRepository
from .study_repository import SQLiteStudyRepository
from .subtitle_loader import SubtitleLoader
from .token_scoring import TokenScorer, get_scorable_tokens, get_testable_indices, lemma_candidates
from .token_selector import TokenSelector
from .tokenizers import FugashiTokenizer, create_tokenizer

__all__ = [
    "AnkiService",
    "get_anki_status",
    "AnswerValidator",
    "CombinedKnowledgeGetter",
    "create_knowledge_getter",
    "LineSelector",
    "PriorityCalculator",
    "SQLiteRecognitionRepository",
    "SQLiteStudyRepository",
    "SubtitleLoader",
    "TokenScorer",
    "get_scorable_tokens",
    "get_testable_indices",
    "lemma_candidates",
    "TokenSelector",
    "FugashiTokenizer",
    "create_tokenizer",
]
