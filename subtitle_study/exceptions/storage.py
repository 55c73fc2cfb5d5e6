"""Persistence and configuration exceptions."""

from .base import StudyModeException


class RepositoryError(StudyModeException):
    """Raised when a study or recognition record cannot be read or written."""

    pass


class ConfigError(StudyModeException):
    """Raised when configuration values are invalid."""

    pass
