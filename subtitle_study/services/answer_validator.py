"""Validate free-text answers against blanked tokens."""

import logging

from subtitle_study.interfaces import Tokenizer
from subtitle_study.models import TokenPart, flatten_token_groups
from subtitle_study.utils import katakana_to_hiragana

logger = logging.getLogger(__name__)


def expected_reading(token: TokenPart) -> str:
    """Reading of a token folded to hiragana, falling back to its text."""
    return katakana_to_hiragana(token.reading or token.text)


class AnswerValidator:
    """Accept an answer if it matches the surface form, the reading, or spells the same reading.

    Tiers, in order:
        1. exact match on the token's surface text
        2. match on the token's reading folded to hiragana
        3. the answer re-tokenized, its folded reading compared to the expected one
           (so 学生 typed for がくせい, or a different kanji spelling, is accepted)
    """

    def __init__(self, tokenizer: Tokenizer | None = None):
        self.tokenizer = tokenizer

    async def is_correct(self, token: TokenPart, answer: str) -> bool:
        user_answer = answer.strip()
        if not user_answer:
            return False

        if user_answer == token.text.strip():
            return True

        reading = expected_reading(token)
        if user_answer == reading:
            return True

        if self.tokenizer is None:
            return False

        try:
            groups = await self.tokenizer.tokenize(user_answer)
        except Exception as e:
            logger.debug(f"Could not tokenize answer {user_answer!r}: {e}")
            return False

        user_reading = "".join(expected_reading(part) for part in flatten_token_groups(groups))
        return user_reading == reading

    async def validate(
        self,
        tokens: tuple[TokenPart, ...] | list[TokenPart],
        blanked_indices: tuple[int, ...] | list[int],
        answers: list[str],
    ) -> list[bool]:
        """Check one answer per blank.

        Every blank is evaluated; results do not depend on evaluation order.

        Args:
            tokens: Tokens of the tested line
            blanked_indices: Indices of blanked tokens
            answers: Answers in blank order

        Returns:
            Per-blank correctness
        """
        results = []
        for position, index in enumerate(blanked_indices):
            answer = answers[position] if position < len(answers) else ""
            results.append(await self.is_correct(tokens[index], answer))
        return results
