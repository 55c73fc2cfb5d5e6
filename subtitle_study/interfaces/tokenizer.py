"""Protocol for morphological tokenizer backends."""

from typing import Protocol

from subtitle_study.models import TokenPart


class Tokenizer(Protocol):
    """Interface for a tokenizer that splits a line into token groups.

    Any backend (MeCab via fugashi, an HTTP dictionary service, etc.)
    implements this protocol; the engine never depends on a concrete class.
    """

    async def tokenize(self, text: str) -> list[list[TokenPart]]:
        """Tokenize text into groups of token parts.

        Each group represents one morphological unit.

        Raises:
            TokenizerError: If the text cannot be tokenized.
        """
        ...

    async def is_ready(self) -> bool:
        """Check if the tokenizer is loaded and able to serve requests."""
        ...

    def reset_cache(self) -> None:
        """Drop any cached tokenization results."""
        ...

    def dispose(self) -> None:
        """Release backend resources."""
        ...
