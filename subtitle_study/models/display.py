"""Display-state snapshots and overlay intents exchanged with the presentation layer."""

from dataclasses import dataclass, replace
from enum import Enum

from .token import TokenPart


class EngineState(str, Enum):
    """Lifecycle state of the study mode engine."""

    IDLE = "idle"
    EVALUATING = "evaluating"
    SHOWING = "showing"
    RESULT_SHOWN = "result_shown"


@dataclass(frozen=True)
class StudyTestDisplayState:
    """Immutable snapshot of what the overlay should render."""

    tokens: tuple[TokenPart, ...]
    blanked_indices: tuple[int, ...]
    user_answers: tuple[str, ...]
    showing_result: bool = False
    result_correct: bool = False
    answer_results: tuple[bool, ...] | None = None

    @classmethod
    def initial(
        cls, tokens: tuple[TokenPart, ...], blanked_indices: tuple[int, ...]
    ) -> "StudyTestDisplayState":
        """Create the input-mode state with one empty answer per blank."""
        return cls(
            tokens=tokens,
            blanked_indices=blanked_indices,
            user_answers=tuple("" for _ in blanked_indices),
        )

    def with_answer(self, index: int, value: str) -> "StudyTestDisplayState":
        answers = list(self.user_answers)
        answers[index] = value
        return replace(self, user_answers=tuple(answers))

    def with_result(self, answers: list[str], answer_results: list[bool]) -> "StudyTestDisplayState":
        return replace(
            self,
            user_answers=tuple(answers),
            showing_result=True,
            result_correct=all(answer_results),
            answer_results=tuple(answer_results),
        )

    @property
    def blanked_tokens(self) -> list[TokenPart]:
        return [self.tokens[i] for i in self.blanked_indices]


@dataclass(frozen=True)
class ReplayIntent:
    """Learner asked to hear the line again."""


@dataclass(frozen=True)
class SubmitIntent:
    """Learner submitted one answer per blank."""

    answers: tuple[str, ...]


@dataclass(frozen=True)
class ContinueIntent:
    """Learner acknowledged the result and wants playback to resume."""

    passed: bool


@dataclass(frozen=True)
class InputChangeIntent:
    """Learner edited the answer for one blank."""

    index: int
    value: str


@dataclass(frozen=True)
class DismissIntent:
    """Overlay was hidden externally before the test finished."""


OverlayIntent = ReplayIntent | SubmitIntent | ContinueIntent | InputChangeIntent | DismissIntent
