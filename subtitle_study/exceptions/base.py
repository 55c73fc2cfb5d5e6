"""Base exception classes for Subtitle Study."""


class StudyModeException(Exception):
    """Base exception for all Subtitle Study errors.

    All custom exceptions in the subtitle_study package should inherit
    from this base class for consistent error handling.
    """

    pass
