"""Two-tier priority scoring from deck knowledge and recognition history."""

from subtitle_study.models import (
    INTENSITY_THRESHOLDS,
    FocusMode,
    KnowledgeStatus,
    PriorityResult,
    RecognitionStats,
    StudyIntensity,
)

# Less familiar words are more worth testing
KNOWLEDGE_PRIORITY: dict[KnowledgeStatus, float] = {
    KnowledgeStatus.UNCOLLECTED: 1.0,
    KnowledgeStatus.NEW: 0.8,
    KnowledgeStatus.LEARNING: 0.6,
    KnowledgeStatus.YOUNG: 0.3,
    KnowledgeStatus.MATURE: 0.1,
}

# (knowledge weight, recognition weight) per focus mode
FOCUS_WEIGHTS: dict[FocusMode, tuple[float, float]] = {
    FocusMode.BALANCED: (0.6, 0.4),
    FocusMode.PRIORITIZE_NEW: (0.85, 0.15),
    FocusMode.PRIORITIZE_WEAK: (0.35, 0.65),
}

NO_HISTORY_PRIORITY = 0.5
LAST_FAILURE_BONUS = 0.25
STREAK_STEP = 0.1
MAX_STREAK = 5


class PriorityCalculator:
    """Score how worth testing a lemma is (pure, stateless apart from focus mode)."""

    def __init__(self, focus_mode: FocusMode = FocusMode.BALANCED):
        self.focus_mode = FocusMode(focus_mode)

    def set_focus_mode(self, focus_mode: FocusMode) -> None:
        self.focus_mode = FocusMode(focus_mode)

    @staticmethod
    def recognition_priority(stats: RecognitionStats | None) -> float:
        """Priority contribution of recognition history, in [0, 1].

        No history is neutral. Failures raise priority (more so when the most
        recent attempt failed); each consecutive success lowers it.
        """
        if stats is None or stats.attempts == 0:
            return NO_HISTORY_PRIORITY

        score = stats.failure_rate
        if stats.last_attempt_failed:
            score += LAST_FAILURE_BONUS
        score -= STREAK_STEP * min(stats.consecutive_successes, MAX_STREAK)
        return min(1.0, max(0.0, score))

    def calculate_priority(
        self,
        lemma: str,
        knowledge_status: KnowledgeStatus,
        recognition_stats: RecognitionStats | None = None,
    ) -> PriorityResult:
        """Combine both signals under the current focus mode.

        Args:
            lemma: Word being scored
            knowledge_status: Combined deck/local knowledge status
            recognition_stats: Recognition history, if any

        Returns:
            PriorityResult with a non-negative final priority
        """
        knowledge_priority = KNOWLEDGE_PRIORITY[knowledge_status]
        recognition_priority = self.recognition_priority(recognition_stats)
        knowledge_weight, recognition_weight = FOCUS_WEIGHTS[self.focus_mode]

        final = knowledge_weight * knowledge_priority + recognition_weight * recognition_priority
        return PriorityResult(
            lemma=lemma,
            knowledge_status=knowledge_status,
            knowledge_priority=knowledge_priority,
            recognition_priority=recognition_priority,
            final_priority=max(0.0, final),
        )

    @staticmethod
    def line_priority(results: list[PriorityResult]) -> float:
        """Aggregate token priorities into a line score."""
        return sum(result.final_priority for result in results)

    @staticmethod
    def should_trigger_study_card(line_score: float, intensity: StudyIntensity) -> bool:
        """Decide whether a line score is high enough to interrupt playback."""
        return line_score >= INTENSITY_THRESHOLDS[StudyIntensity(intensity)]
