"""Custom exceptions for Subtitle Study."""

from .anki import AnkiConnectionError
from .base import StudyModeException
from .media import SubtitleLoadError
from .storage import ConfigError, RepositoryError
from .tokenizer import TokenizerError, TokenizerUnavailableError

__all__ = [
    "StudyModeException",
    "TokenizerError",
    "TokenizerUnavailableError",
    "AnkiConnectionError",
    "RepositoryError",
    "ConfigError",
    "SubtitleLoadError",
]
