"""Data models for tokenized subtitle text."""

from dataclasses import dataclass
from enum import Enum


class WordType(str, Enum):
    """Dictionary classification reported by the morphological analyzer."""

    KNOWN = "KNOWN"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class TokenPart:
    """A single morphological unit of a subtitle line."""

    text: str  # Surface form (as it appears in the line)
    reading: str  # Reading, usually katakana
    pos: str | None = None  # Main part of speech, e.g. "名詞", "記号"
    pos_detail: str | None = None  # Part-of-speech subcategory, e.g. "接続助詞"
    word_type: WordType | None = None
    basic_form: str | None = None  # Dictionary form (lemma)

    @property
    def lemma(self) -> str:
        """Primary lemma used as the knowledge-tracking key."""
        return self.basic_form or self.text

    def __str__(self) -> str:
        return self.text


def flatten_token_groups(groups: list[list[TokenPart]]) -> list[TokenPart]:
    """Flatten tokenizer output into a single ordered token sequence.

    Args:
        groups: Token groups as returned by a tokenizer

    Returns:
        Tokens in line order, indexed 0..n-1
    """
    return [part for group in groups for part in group]


@dataclass(frozen=True)
class SubtitleLine:
    """A subtitle line as reported by the host player."""

    text: str
    start: float  # Start time in seconds
    end: float  # End time in seconds
    index: int | None = None  # Stable line index within the subtitle track

    @property
    def duration(self) -> float:
        return self.end - self.start


class TokenizerType(str, Enum):
    """Available tokenizer backends."""

    FUGASHI = "fugashi"
