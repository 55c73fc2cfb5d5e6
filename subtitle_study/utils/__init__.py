"""Utility functions for Subtitle Study."""

from .async_utils import DetachedTaskGroup
from .text_utils import (
    clean_subtitle_text,
    has_word_characters,
    katakana_to_hiragana,
)

__all__ = [
    "DetachedTaskGroup",
    "clean_subtitle_text",
    "has_word_characters",
    "katakana_to_hiragana",
]
