"""Shared per-token eligibility rules and priority scoring."""

import logging

from subtitle_study.exceptions import StudyModeException
from subtitle_study.interfaces import KnowledgeGetter, RecognitionRepository
from subtitle_study.models import (
    KnowledgeStatus,
    PriorityResult,
    RecognitionStats,
    TokenPart,
    WordType,
)
from subtitle_study.utils import has_word_characters, katakana_to_hiragana

from .priority_calculator import PriorityCalculator

logger = logging.getLogger(__name__)

# Punctuation, symbols and whitespace (IPADIC and UniDic naming)
SYMBOL_POS = frozenset({"記号", "補助記号", "空白"})

# Function words that are never blanked on their own
FUNCTION_POS = frozenset({"助詞", "助動詞"})


def is_scorable(token: TokenPart) -> bool:
    """Check if a token contributes to a line's knowledge score.

    Excludes punctuation/symbol classes, blank text and tokens the analyzer
    could not classify (UNKNOWN word type).
    """
    if token.pos in SYMBOL_POS:
        return False
    if not token.text.strip():
        return False
    return token.word_type is None or token.word_type is WordType.KNOWN


def get_scorable_tokens(tokens: list[TokenPart]) -> list[TokenPart]:
    return [token for token in tokens if is_scorable(token)]


def get_testable_indices(tokens: list[TokenPart]) -> list[int]:
    """Return indices of tokens that may be replaced by a blank.

    A testable token is scorable, contains real word characters and is not a
    particle or auxiliary on its own.

    Args:
        tokens: Flattened token sequence

    Returns:
        Indices in ascending order
    """
    return [
        i
        for i, token in enumerate(tokens)
        if is_scorable(token) and token.pos not in FUNCTION_POS and has_word_characters(token.text)
    ]


def lemma_candidates(token: TokenPart) -> list[str]:
    """Build the forms a flashcard deck might store this word under.

    Order: dictionary form, surface form if different, reading folded to hiragana.
    """
    candidates: list[str] = []
    if token.basic_form:
        candidates.append(token.basic_form)
    if token.text and token.text not in candidates:
        candidates.append(token.text)
    if token.reading:
        reading = katakana_to_hiragana(token.reading)
        if reading not in candidates:
            candidates.append(reading)
    return candidates


class TokenScorer:
    """Compute a token's priority from knowledge status and recognition history."""

    def __init__(
        self,
        calculator: PriorityCalculator,
        knowledge_getter: KnowledgeGetter | None = None,
        recognition_repository: RecognitionRepository | None = None,
    ):
        self.calculator = calculator
        self.knowledge_getter = knowledge_getter
        self.recognition_repository = recognition_repository

    async def score(self, token: TokenPart) -> PriorityResult:
        lemma = token.lemma

        status = KnowledgeStatus.UNCOLLECTED
        if self.knowledge_getter is not None:
            try:
                status = await self.knowledge_getter.get(lemma_candidates(token))
            except StudyModeException as e:
                logger.warning(f"Knowledge lookup failed for {lemma}: {e}")

        stats: RecognitionStats | None = None
        if self.recognition_repository is not None:
            try:
                stats = await self.recognition_repository.get_stats(lemma)
            except StudyModeException as e:
                logger.warning(f"Recognition stats lookup failed for {lemma}: {e}")

        return self.calculator.calculate_priority(lemma, status, stats)
