"""MeCab tokenizer backend built on fugashi."""

import asyncio
import logging

import fugashi

from subtitle_study.exceptions import TokenizerError, TokenizerUnavailableError
from subtitle_study.models import TokenPart, WordType

logger = logging.getLogger(__name__)


class FugashiTokenizer:
    """Tokenize Japanese text with MeCab (UniDic) through fugashi.

    The tagger is created lazily on first use. Each MeCab word becomes its own
    token group. Results are cached per input text until ``reset_cache``.
    """

    def __init__(self, tagger_args: str = ""):
        """Initialize the tokenizer.

        Args:
            tagger_args: Extra MeCab arguments, e.g. a dictionary path
        """
        self._tagger_args = tagger_args
        self._tagger: fugashi.Tagger | None = None
        self._cache: dict[str, list[list[TokenPart]]] = {}

    def _load(self) -> fugashi.Tagger:
        """Create the MeCab tagger if needed.

        Raises:
            TokenizerUnavailableError: If MeCab or its dictionary cannot be loaded
        """
        if self._tagger is None:
            try:
                self._tagger = fugashi.Tagger(self._tagger_args)
            except Exception as e:
                raise TokenizerUnavailableError(f"Failed to initialize MeCab tagger: {e}") from e
            logger.info("MeCab tagger initialized")
        return self._tagger

    async def is_ready(self) -> bool:
        try:
            await asyncio.to_thread(self._load)
            return True
        except TokenizerUnavailableError as e:
            logger.warning(str(e))
            return False

    async def tokenize(self, text: str) -> list[list[TokenPart]]:
        cached = self._cache.get(text)
        if cached is not None:
            return cached

        groups = await asyncio.to_thread(self._tokenize_sync, text)
        self._cache[text] = groups
        return groups

    def _tokenize_sync(self, text: str) -> list[list[TokenPart]]:
        tagger = self._load()
        try:
            words = tagger(text)
        except Exception as e:
            raise TokenizerError(f"Failed to tokenize {text!r}: {e}") from e

        groups = []
        for word in words:
            surface = word.surface
            if not surface:
                continue
            groups.append(
                [
                    TokenPart(
                        text=surface,
                        reading=self._extract_reading(word),
                        pos=self._extract_feature(word, "pos1"),
                        pos_detail=self._extract_feature(word, "pos2"),
                        word_type=WordType.UNKNOWN if getattr(word, "is_unk", False) else WordType.KNOWN,
                        basic_form=self._extract_lemma(word),
                    )
                ]
            )
        return groups

    def reset_cache(self) -> None:
        self._cache.clear()

    def dispose(self) -> None:
        self._tagger = None
        self._cache.clear()

    @staticmethod
    def _extract_feature(word, name: str) -> str | None:
        try:
            value = getattr(word.feature, name)
        except AttributeError:
            return None
        # UniDic marks empty columns with "*"
        if not value or value == "*":
            return None
        return str(value)

    @staticmethod
    def _extract_reading(word) -> str:
        """Extract the katakana reading, falling back to the surface form."""
        try:
            return str(word.feature.kana or word.surface)
        except AttributeError:
            return str(word.surface)

    @staticmethod
    def _extract_lemma(word) -> str:
        """Extract the dictionary form of a word.

        UniDic lemmas may carry an English gloss after a hyphen,
        e.g. "スクランブル-scramble" -> "スクランブル".
        """
        try:
            lemma = word.feature.lemma or word.surface
        except AttributeError:
            lemma = word.surface

        if "-" in lemma:
            lemma = lemma.split("-")[0] or word.surface

        return str(lemma)
