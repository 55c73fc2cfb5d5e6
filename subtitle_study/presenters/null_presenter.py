"""Null presenter and study overlay for testing (no output)."""

from subtitle_study.interfaces import IntentHandler
from subtitle_study.models import (
    LineAssessment,
    OverlayIntent,
    RecognitionStats,
    StudyStats,
    StudyTestDisplayState,
    SubtitleLine,
)


class NullPresenter:
    """Present output to nowhere (testing implementation)."""

    def show_info(self, message: str) -> None:
        pass

    def show_success(self, message: str) -> None:
        pass

    def show_warning(self, message: str) -> None:
        pass

    def show_error(self, message: str) -> None:
        pass

    def show_subtitle(self, line: SubtitleLine) -> None:
        pass

    def show_line_assessment(self, assessment: LineAssessment) -> None:
        pass

    def show_session_summary(self, tested: int, passed: int, lines: int) -> None:
        pass

    def show_ranked_lines(self, lines: list[SubtitleLine], ranking: list[tuple[int, float]], limit: int) -> None:
        pass

    def show_word_stats(self, study: StudyStats, recognition: RecognitionStats) -> None:
        pass


class NullStudyOverlay:
    """Study overlay that only records what it was asked to render.

    ``emit`` lets tests play the learner's part by forwarding intents to the
    registered handler.
    """

    def __init__(self):
        self.shown: list[StudyTestDisplayState] = []
        self.updates: list[StudyTestDisplayState] = []
        self.hide_count = 0
        self.state: StudyTestDisplayState | None = None
        self._handler: IntentHandler | None = None
        self._visible = False

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def has_handler(self) -> bool:
        return self._handler is not None

    def set_intent_handler(self, handler: IntentHandler | None) -> None:
        self._handler = handler

    def show(self, state: StudyTestDisplayState) -> None:
        self.shown.append(state)
        self.state = state
        self._visible = True

    def update(self, state: StudyTestDisplayState) -> None:
        self.updates.append(state)
        self.state = state

    def hide(self) -> None:
        self.hide_count += 1
        self.state = None
        self._visible = False

    async def emit(self, intent: OverlayIntent) -> None:
        if self._handler is not None:
            await self._handler(intent)
