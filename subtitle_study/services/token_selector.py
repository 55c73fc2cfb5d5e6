"""Choose which tokens of a tested line to blank."""

import logging
import random

from subtitle_study.interfaces import KnowledgeGetter, RecognitionRepository
from subtitle_study.models import FocusMode, TokenBlankingStrategy, TokenPart

from .priority_calculator import PriorityCalculator
from .token_scoring import TokenScorer, get_testable_indices

logger = logging.getLogger(__name__)

# Parts of speech that inflect and can carry a conjugation chain
INFLECTING_POS = frozenset({"動詞", "形容詞", "形状詞"})

# Conjunctive particles that glue a verb to the following auxiliary (食べて, 読んで)
CONJUNCTIVE_TE = frozenset({"て", "で"})

# Subcategories of dependent verbs/adjectives and inflectional suffixes
DEPENDENT_DETAILS = frozenset({"非自立", "非自立可能", "接尾", "動詞的", "形容詞的"})

# Keeps zero-priority tokens selectable under weighted sampling
MIN_WEIGHT = 0.01


def is_conjugation_continuation(token: TokenPart) -> bool:
    """Check if a token continues the inflection of the word before it."""
    if token.pos == "助動詞":
        return True
    if token.pos == "助詞":
        return token.pos_detail == "接続助詞" and token.text in CONJUNCTIVE_TE
    if token.pos in ("動詞", "形容詞", "接尾辞"):
        return token.pos_detail in DEPENDENT_DETAILS
    return False


class TokenSelector:
    """Select blank positions, optionally biased toward unfamiliar words."""

    def __init__(
        self,
        knowledge_getter: KnowledgeGetter | None = None,
        recognition_repository: RecognitionRepository | None = None,
        calculator: PriorityCalculator | None = None,
        rng: random.Random | None = None,
    ):
        self._scorer = TokenScorer(
            calculator or PriorityCalculator(),
            knowledge_getter=knowledge_getter,
            recognition_repository=recognition_repository,
        )
        self._rng = rng or random.Random()

    def set_knowledge_getter(self, knowledge_getter: KnowledgeGetter | None) -> None:
        self._scorer.knowledge_getter = knowledge_getter

    def set_recognition_repository(self, repository: RecognitionRepository | None) -> None:
        self._scorer.recognition_repository = repository

    def set_focus_mode(self, focus_mode: FocusMode) -> None:
        self._scorer.calculator.set_focus_mode(focus_mode)

    @staticmethod
    def group_conjugations(tokens: list[TokenPart]) -> list[TokenPart]:
        """Merge inflection chains into single tokens.

        A verb or adjective followed by auxiliaries, conjunctive て/で,
        dependent verbs or inflectional suffixes becomes one token, so a blank
        always covers the whole inflected form (食べ + まし + た -> 食べました).

        Args:
            tokens: Flattened token sequence

        Returns:
            New token sequence; tokens outside chains are returned unchanged
        """
        merged: list[TokenPart] = []
        chain: list[TokenPart] = []

        def flush():
            if not chain:
                return
            if len(chain) == 1:
                merged.append(chain[0])
            else:
                head = chain[0]
                merged.append(
                    TokenPart(
                        text="".join(t.text for t in chain),
                        reading="".join(t.reading or t.text for t in chain),
                        pos=head.pos,
                        pos_detail=head.pos_detail,
                        word_type=head.word_type,
                        basic_form=head.basic_form,
                    )
                )
            chain.clear()

        for token in tokens:
            if chain and is_conjugation_continuation(token):
                chain.append(token)
                continue
            flush()
            if token.pos in INFLECTING_POS:
                chain.append(token)
            else:
                merged.append(token)
        flush()

        return merged

    async def select_tokens_to_blank(
        self,
        tokens: list[TokenPart],
        strategy: TokenBlankingStrategy = TokenBlankingStrategy.RANDOM,
        max_blanks: int = 3,
    ) -> list[int]:
        """Pick up to max_blanks token indices to blank.

        Args:
            tokens: Flattened (and optionally conjugation-grouped) tokens
            strategy: RANDOM for a uniform pick, PRIORITIZE_UNKNOWN to favor
                low-confidence words
            max_blanks: Maximum number of blanks

        Returns:
            Selected indices in ascending order; empty if nothing is testable
        """
        candidates = get_testable_indices(tokens)
        count = min(max_blanks, len(candidates))
        if count <= 0:
            return []

        strategy = TokenBlankingStrategy(strategy)
        if strategy is TokenBlankingStrategy.PRIORITIZE_UNKNOWN and self._scorer.knowledge_getter is not None:
            selected = await self._select_weighted(tokens, candidates, count)
        else:
            selected = self._rng.sample(candidates, count)

        return sorted(selected)

    async def _select_weighted(self, tokens: list[TokenPart], candidates: list[int], count: int) -> list[int]:
        """Weighted sampling without replacement, weight = token priority."""
        weights: dict[int, float] = {}
        for index in candidates:
            result = await self._scorer.score(tokens[index])
            weights[index] = max(result.final_priority, MIN_WEIGHT)

        remaining = list(candidates)
        selected: list[int] = []
        while remaining and len(selected) < count:
            pick = self._rng.choices(remaining, weights=[weights[i] for i in remaining])[0]
            remaining.remove(pick)
            selected.append(pick)

        logger.debug(
            "Weighted blank selection: "
            + ", ".join(f"{tokens[i].text}={weights[i]:.2f}" for i in candidates)
        )
        return selected
