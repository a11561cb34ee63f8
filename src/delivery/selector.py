"""
Card selection for learn and test runs.

Learn runs draw one card at a time, each with probability proportional to
the weight the method assigns it. Weights are recomputed on every draw, so
a card can come straight back if its weight stays high. Zero-weight cards
are out of the draw; when every weight is zero the pass is complete.

Test runs shuffle the in-scope cards once and present each exactly once.
"""

from __future__ import annotations

import random

from loguru import logger

from src.core.exceptions import EmptySetError
from src.learning.methods import Method

from .card_set import Card, CardFilter, CardSet, SessionProgress


class WeightedSelector:
    """Weighted random draws for learn runs."""

    def __init__(self, method: Method, rng: random.Random | None = None):
        """
        Initialize the selector.

        Args:
            method: Method supplying card weights
            rng: Random source (default: a fresh unseeded Random)
        """
        self.method = method
        self.rng = rng or random.Random()

    def weigh(self, card_set: CardSet, card_filter: CardFilter) -> list[tuple[Card, float]]:
        """Weights of every in-scope card, zero weights included."""
        return [
            (card, self.method.get_weight(card.data, card.difficult, card_id=card.id))
            for card in card_set.in_scope(card_filter)
        ]

    def draw(self, card_set: CardSet, card_filter: CardFilter) -> Card:
        """
        Pick the next card.

        Raises:
            EmptySetError: no in-scope card has a positive weight
        """
        pool = [(card, weight) for card, weight in self.weigh(card_set, card_filter) if weight > 0]
        if not pool:
            raise EmptySetError("no cards left to learn in this pass")

        total = sum(weight for _, weight in pool)
        cards = [card for card, _ in pool]
        weights = [weight for _, weight in pool]
        card = self.rng.choices(cards, weights=weights, k=1)[0]

        logger.debug(f"Drew card {card.id} from {len(pool)} eligible (total weight {total:.3f})")
        return card


class TestQueue:
    """Single-pass shuffled queue for test runs."""

    # Not a test case
    __test__ = False

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def build(self, card_set: CardSet, card_filter: CardFilter) -> list[str]:
        """Shuffled ids of every in-scope card."""
        queue = [card.id for card in card_set.in_scope(card_filter)]
        self.rng.shuffle(queue)
        return queue

    def peek(self, card_set: CardSet, progress: SessionProgress) -> Card:
        """
        The card at the head of the queue.

        Ids of cards no longer in the set are dropped.

        Raises:
            EmptySetError: the queue is exhausted
        """
        queue = progress.queue or []
        while queue:
            card = card_set.get_card(queue[0])
            if card is not None:
                return card
            logger.warning(f"Dropping unknown card {queue[0]} from test queue")
            queue.pop(0)
        raise EmptySetError("every card in this test has been presented")

    @staticmethod
    def pop(progress: SessionProgress, card_id: str) -> None:
        """Remove a presented card from the head of the queue."""
        if progress.queue and progress.queue[0] == card_id:
            progress.queue.pop(0)
