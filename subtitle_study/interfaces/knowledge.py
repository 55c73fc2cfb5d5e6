"""Protocols for knowledge sources and result repositories."""

from typing import Protocol, Sequence

from subtitle_study.models import (
    KnowledgeStatus,
    RecognitionAttempt,
    RecognitionStats,
    StudyRecord,
    StudyStats,
)


class KnowledgeGetter(Protocol):
    """Reports how well the learner knows a word."""

    async def get(self, candidates: Sequence[str]) -> KnowledgeStatus:
        """Return the combined knowledge status for lemma candidates.

        A match on any candidate counts as prior exposure.
        """
        ...


class StudyRepository(Protocol):
    """Log of every answered blank."""

    async def save(self, record: StudyRecord) -> None: ...

    async def get_stats(self, lemma: str) -> StudyStats: ...


class RecognitionRepository(Protocol):
    """Per-lemma recognition success/failure history."""

    async def get_stats(self, lemma: str) -> RecognitionStats: ...

    async def record_attempts_batch(self, attempts: Sequence[RecognitionAttempt]) -> None: ...
