"""Subtitle processing exceptions."""

from .base import StudyModeException


class SubtitleLoadError(StudyModeException):
    """Raised when a subtitle file cannot be loaded."""

    pass
