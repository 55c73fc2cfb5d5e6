"""Protocol for the study test presentation layer."""

from typing import Awaitable, Callable, Protocol

from subtitle_study.models import OverlayIntent, StudyTestDisplayState

IntentHandler = Callable[[OverlayIntent], Awaitable[object]]


class StudyOverlay(Protocol):
    """Renders display-state snapshots and emits learner intents.

    The overlay never mutates engine state directly; it forwards intents
    (submit, continue, replay, input change, dismiss) to the registered handler.
    """

    @property
    def visible(self) -> bool: ...

    def show(self, state: StudyTestDisplayState) -> None: ...

    def update(self, state: StudyTestDisplayState) -> None: ...

    def hide(self) -> None: ...

    def set_intent_handler(self, handler: IntentHandler | None) -> None: ...
