"""Anki and AnkiConnect related exceptions."""

from .base import StudyModeException


class AnkiConnectionError(StudyModeException):
    """Raised when cannot connect to AnkiConnect."""

    pass
