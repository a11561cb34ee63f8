"""
Card Set: the persisted data model.

- Card: one question/answer pair with method-owned data
- SessionProgress: the in-progress learn or test run embedded in a set
- CardSet: a named collection of cards bound to one method

The engine never looks inside Card.data; only the bound method does.
"""

from __future__ import annotations

import uuid
from enum import Enum

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, JsonValue

from src.core.exceptions import MethodMismatchError
from src.learning.adapters import Adapter
from src.learning.methods import Method


def new_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# Enums
# =============================================================================


class SessionKind(str, Enum):
    """Kind of run a session belongs to."""

    LEARN = "learn"
    TEST = "test"


class CardFilter(str, Enum):
    """Which cards a run or listing targets."""

    NONE = "none"
    DIFFICULT = "difficult"
    STARRED = "starred"

    def admits(self, card: Card) -> bool:
        if self is CardFilter.DIFFICULT:
            return card.difficult
        if self is CardFilter.STARRED:
            return card.starred
        return True


# =============================================================================
# Models
# =============================================================================


class Card(BaseModel):
    """One learnable fact."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=new_id, frozen=True)
    question: str = Field(frozen=True)
    answer: str = Field(frozen=True)
    difficult: bool = False
    starred: bool = False
    data: JsonValue = None


class SessionProgress(BaseModel):
    """Run state persisted after every review."""

    model_config = ConfigDict(extra="forbid")

    kind: SessionKind
    filter: CardFilter = CardFilter.NONE
    # Remaining card ids in presentation order (test runs only)
    queue: list[str] | None = None
    reviewed: int = 0
    active: bool = True

    def matches(self, kind: SessionKind, card_filter: CardFilter) -> bool:
        return self.active and self.kind == kind and self.filter == card_filter


class CardSet(BaseModel):
    """
    A collection of cards bound to exactly one method.

    The method binding never changes; switching methods means creating a
    new set, since each method shapes card data its own way.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=new_id, frozen=True)
    name: str = ""
    method: str = Field(frozen=True)
    cards: list[Card] = Field(default_factory=list)
    session: SessionProgress | None = None

    def get_card(self, card_id: str) -> Card | None:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def in_scope(self, card_filter: CardFilter) -> list[Card]:
        """Cards a run with this filter may present, in set order."""
        return [card for card in self.cards if card_filter.admits(card)]

    def list_cards(self, card_filter: CardFilter = CardFilter.NONE) -> list[Card]:
        """Read-only listing; returns copies so callers cannot mutate the set."""
        return [card.model_copy(deep=True) for card in self.in_scope(card_filter)]

    def reset_stars(self) -> int:
        """Unstar every card. Returns how many were starred."""
        count = 0
        for card in self.cards:
            if card.starred:
                card.starred = False
                count += 1
        return count

    def reset_learn(self, method: Method) -> None:
        """
        Revert every card to the method's default data and clear difficulty.

        Raises:
            MethodMismatchError: method is not the one bound to this set
        """
        ensure_method_matches(self, method.name)
        for card in self.cards:
            card.data = method.get_default_metadata()
            card.difficult = False
        if self.session is not None and self.session.kind == SessionKind.LEARN:
            self.session = None
        logger.info(f"Reset learning data of {len(self.cards)} cards in set {self.name or self.id}")

    def clear_session(self) -> None:
        self.session = None


def ensure_method_matches(card_set: CardSet, method_name: str) -> None:
    """
    Guard against running a set with a method it was not created with.

    Raises:
        MethodMismatchError: the identifiers differ
    """
    if method_name != card_set.method:
        raise MethodMismatchError(
            f"set is bound to method '{card_set.method}', not '{method_name}' "
            "(create a new set to switch methods)",
            script=method_name,
        )


def create_set(source: str, adapter: Adapter, method: Method, name: str = "") -> CardSet:
    """
    Build a new set from raw source text.

    The adapter produces the pairs; every card gets a fresh id and the
    method's default data.
    """
    pairs = adapter.run(source)
    cards = [
        Card(question=question, answer=answer, data=method.get_default_metadata())
        for question, answer in pairs
    ]
    card_set = CardSet(name=name, method=method.name, cards=cards)
    logger.info(
        f"Created set {name or card_set.id} with {len(cards)} cards "
        f"(adapter={adapter.name}, method={method.name})"
    )
    return card_set
