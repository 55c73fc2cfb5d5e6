"""Service for reading card status from Anki via AnkiConnect."""

import logging
from typing import Sequence

import requests

from subtitle_study.exceptions import AnkiConnectionError
from subtitle_study.models import KnowledgeStatus, StudyDeckConfig

logger = logging.getLogger(__name__)

# Review cards with an interval of at least this many days count as mature
MATURE_INTERVAL_DAYS = 21


class AnkiService:
    """Look up how well words are known in the learner's Anki decks (stateless service)."""

    def __init__(self, ankiconnect_url: str = "http://127.0.0.1:8765", timeout: float = 10.0):
        """Initialize the Anki service.

        Args:
            ankiconnect_url: AnkiConnect endpoint
            timeout: Request timeout in seconds
        """
        self.ankiconnect_url = ankiconnect_url
        self.timeout = timeout

    def _invoke(self, action: str, **params):
        """Call an AnkiConnect action and return its result.

        Raises:
            AnkiConnectionError: If AnkiConnect is unreachable or reports an error
        """
        try:
            response = requests.post(
                self.ankiconnect_url,
                json={"action": action, "version": 6, "params": params},
                timeout=self.timeout,
            )
            result = response.json()
        except requests.exceptions.ConnectionError as e:
            raise AnkiConnectionError("Cannot connect to AnkiConnect. Is Anki running?") from e
        except (requests.RequestException, ValueError) as e:
            raise AnkiConnectionError(f"AnkiConnect request failed: {e}") from e

        if result.get("error"):
            raise AnkiConnectionError(f"AnkiConnect error during {action}: {result['error']}")
        return result.get("result")

    def is_available(self) -> bool:
        """Check if AnkiConnect responds."""
        try:
            self._invoke("version")
            return True
        except AnkiConnectionError:
            return False

    def get_deck_names(self) -> list[str]:
        """Return all deck names in the collection."""
        return list(self._invoke("deckNames") or [])

    def get_card_status(
        self,
        decks: Sequence[StudyDeckConfig],
        candidates: Sequence[str],
    ) -> KnowledgeStatus:
        """Get the most advanced card status for any candidate in the given decks.

        Args:
            decks: Decks to search; disabled decks are skipped
            candidates: Lemma, surface and reading forms of one word

        Returns:
            Best status across all matching cards, UNCOLLECTED if none match

        Raises:
            AnkiConnectionError: If AnkiConnect cannot be queried
        """
        words = [c for c in dict.fromkeys(candidates) if c]
        enabled = [deck for deck in decks if deck.enabled]
        if not words or not enabled:
            return KnowledgeStatus.UNCOLLECTED

        card_ids: list[int] = []
        for deck in enabled:
            card_ids.extend(self._invoke("findCards", query=self._build_query(deck, words)) or [])

        if not card_ids:
            return KnowledgeStatus.UNCOLLECTED

        cards = self._invoke("cardsInfo", cards=card_ids) or []
        return KnowledgeStatus.best(self._card_status(card) for card in cards)

    @staticmethod
    def _build_query(deck: StudyDeckConfig, words: Sequence[str]) -> str:
        """Build a search query matching any of the words in the deck's word field."""
        terms = " OR ".join(f'"{deck.word_field}:{_escape(word)}"' for word in words)
        return f'"deck:{_escape(deck.deck_name)}" ({terms})'

    @staticmethod
    def _card_status(card: dict) -> KnowledgeStatus:
        """Map AnkiConnect card info to a knowledge status.

        Card types: 0 = new, 1 = learning, 2 = review, 3 = relearning.
        """
        card_type = card.get("type", 0)
        if card_type == 0:
            return KnowledgeStatus.NEW
        if card_type in (1, 3):
            return KnowledgeStatus.LEARNING
        if card.get("interval", 0) >= MATURE_INTERVAL_DAYS:
            return KnowledgeStatus.MATURE
        return KnowledgeStatus.YOUNG


def _escape(value: str) -> str:
    """Escape characters with special meaning in Anki search strings."""
    for char in ("\\", '"', "*", "_"):
        value = value.replace(char, f"\\{char}")
    return value


def get_anki_status(
    anki_service: AnkiService,
    decks: Sequence[StudyDeckConfig],
    candidates: str | Sequence[str],
) -> KnowledgeStatus:
    """Get the Anki status of a word, treating a missing deck selection as uncollected.

    Args:
        anki_service: Service used for the lookup
        decks: Configured study decks
        candidates: A single lemma or several candidate forms

    Returns:
        Knowledge status of the word

    Raises:
        AnkiConnectionError: If AnkiConnect cannot be queried
    """
    if isinstance(candidates, str):
        candidates = [candidates]
    if not any(deck.enabled for deck in decks):
        return KnowledgeStatus.UNCOLLECTED
    return anki_service.get_card_status(decks, candidates)
