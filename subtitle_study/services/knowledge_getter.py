"""Combine Anki deck status with local study history into one knowledge status."""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from subtitle_study.exceptions import StudyModeException
from subtitle_study.interfaces import StudyRepository
from subtitle_study.models import KnowledgeStatus, StudyDeckConfig, StudyStats

from .anki_service import AnkiService, get_anki_status

logger = logging.getLogger(__name__)

AnkiStatusFn = Callable[[Sequence[str]], Awaitable[KnowledgeStatus]]
StudyStatsFn = Callable[[str], Awaitable[StudyStats]]

# Local results needed before a word counts as "young" without an Anki card
YOUNG_MIN_CORRECT = 3
YOUNG_MIN_ACCURACY = 0.8


def status_from_study_stats(stats: StudyStats) -> KnowledgeStatus:
    """Derive a knowledge status from local test results alone.

    Args:
        stats: Aggregated local results for a lemma

    Returns:
        UNCOLLECTED if never tested, NEW if only missed, LEARNING after a
        correct answer, YOUNG after repeated accurate answers
    """
    if stats.total_attempts == 0:
        return KnowledgeStatus.UNCOLLECTED
    if stats.correct >= YOUNG_MIN_CORRECT and stats.accuracy >= YOUNG_MIN_ACCURACY:
        return KnowledgeStatus.YOUNG
    if stats.correct > 0:
        return KnowledgeStatus.LEARNING
    return KnowledgeStatus.NEW


class CombinedKnowledgeGetter:
    """Knowledge getter that takes the best of Anki status and local study stats.

    Lookup failures never propagate: a failing Anki query counts as
    UNCOLLECTED and failing local stats as empty, so an outage only lowers
    scoring quality.
    """

    def __init__(self, get_anki_status_fn: AnkiStatusFn, get_study_stats_fn: StudyStatsFn | None = None):
        """Initialize the knowledge getter.

        Args:
            get_anki_status_fn: Coroutine returning the deck status of candidates
            get_study_stats_fn: Coroutine returning local stats of a lemma
        """
        self._get_anki_status = get_anki_status_fn
        self._get_study_stats = get_study_stats_fn

    async def get(self, candidates: Sequence[str]) -> KnowledgeStatus:
        words = [c for c in dict.fromkeys(candidates) if c]
        if not words:
            return KnowledgeStatus.UNCOLLECTED

        try:
            anki_status = await self._get_anki_status(words)
        except StudyModeException as e:
            logger.warning(f"Anki status lookup failed for {words[0]}: {e}")
            anki_status = KnowledgeStatus.UNCOLLECTED

        local_status = KnowledgeStatus.UNCOLLECTED
        if self._get_study_stats is not None:
            try:
                local_status = status_from_study_stats(await self._get_study_stats(words[0]))
            except StudyModeException as e:
                logger.warning(f"Study stats lookup failed for {words[0]}: {e}")

        return KnowledgeStatus.best([anki_status, local_status])


def create_knowledge_getter(
    anki_service: AnkiService,
    decks: Callable[[], Sequence[StudyDeckConfig]],
    study_repository: StudyRepository | None = None,
) -> CombinedKnowledgeGetter:
    """Build a knowledge getter backed by AnkiConnect and the study repository.

    Args:
        anki_service: AnkiConnect client
        decks: Callable returning the current deck configuration, so settings
            changes apply without rebuilding the getter
        study_repository: Optional local study log

    Returns:
        A ready knowledge getter
    """

    async def anki_status(candidates: Sequence[str]) -> KnowledgeStatus:
        return await asyncio.to_thread(get_anki_status, anki_service, decks(), candidates)

    study_stats = study_repository.get_stats if study_repository is not None else None
    return CombinedKnowledgeGetter(anki_status, study_stats)
