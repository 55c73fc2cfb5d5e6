"""Presenter implementations for output handling."""

from .console_presenter import ConsolePresenter, ConsoleStudyOverlay, render_cloze
from .null_presenter import NullPresenter, NullStudyOverlay

__all__ = [
    "ConsolePresenter",
    "ConsoleStudyOverlay",
    "render_cloze",
    "NullPresenter",
    "NullStudyOverlay",
]
