"""Tokenizer related exceptions."""

from .base import StudyModeException


class TokenizerError(StudyModeException):
    """Raised when a line cannot be tokenized."""

    pass


class TokenizerUnavailableError(TokenizerError):
    """Raised when a tokenizer backend cannot be initialized."""

    pass
