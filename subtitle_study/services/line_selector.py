"""Knowledge-driven decision on whether a subtitle line is worth testing."""

import logging

from subtitle_study.interfaces import KnowledgeGetter, RecognitionRepository
from subtitle_study.models import (
    INTENSITY_THRESHOLDS,
    LineAssessment,
    StudyIntensity,
    TokenPart,
)

from .priority_calculator import PriorityCalculator
from .token_scoring import TokenScorer, get_scorable_tokens

logger = logging.getLogger(__name__)


class LineSelector:
    """Score a tokenized line and compare it against the intensity threshold."""

    def __init__(
        self,
        knowledge_getter: KnowledgeGetter,
        recognition_repository: RecognitionRepository | None = None,
        calculator: PriorityCalculator | None = None,
    ):
        self.calculator = calculator or PriorityCalculator()
        self._scorer = TokenScorer(
            self.calculator,
            knowledge_getter=knowledge_getter,
            recognition_repository=recognition_repository,
        )

    async def calculate_line_score(self, tokens: list[TokenPart]) -> float:
        """Sum the priorities of the given tokens."""
        results = [await self._scorer.score(token) for token in tokens]
        return self.calculator.line_priority(results)

    async def assess(self, tokens: list[TokenPart], intensity: StudyIntensity) -> LineAssessment | None:
        """Decide whether a line should trigger a test.

        Args:
            tokens: Flattened tokens of the line
            intensity: Current study intensity

        Returns:
            The assessment, or None when the line has no scorable tokens
        """
        scorable = get_scorable_tokens(tokens)
        if not scorable:
            return None

        intensity = StudyIntensity(intensity)
        score = await self.calculate_line_score(scorable)
        assessment = LineAssessment(
            score=score,
            threshold=INTENSITY_THRESHOLDS[intensity],
            token_count=len(scorable),
            triggered=self.calculator.should_trigger_study_card(score, intensity),
        )
        logger.debug(
            f"Line assessment: score={assessment.score:.2f} threshold={assessment.threshold} "
            f"tokens={assessment.token_count} trigger={assessment.triggered}"
        )
        return assessment

    async def rank_lines(self, lines: list[list[TokenPart]]) -> list[tuple[int, float]]:
        """Order candidate lines by score, highest first.

        Args:
            lines: Flattened tokens per candidate line

        Returns:
            (position in ``lines``, score) pairs; lines without scorable tokens are dropped
        """
        scored = []
        for position, tokens in enumerate(lines):
            scorable = get_scorable_tokens(tokens)
            if scorable:
                scored.append((position, await self.calculate_line_score(scorable)))
        return sorted(scored, key=lambda item: item[1], reverse=True)
