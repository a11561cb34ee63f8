"""
Delivery: card sets and the runs that review them.

Components:
- CardSet / Card / SessionProgress: persisted data model
- SetStore: JSON persistence with atomic replacement
- WeightedSelector / TestQueue: card selection
- SessionDriver: learn/test state machine
"""

from .card_set import (
    Card,
    CardFilter,
    CardSet,
    SessionKind,
    SessionProgress,
    create_set,
    ensure_method_matches,
)
from .driver import ReviewPrompt, RunOptions, RunState, RunSummary, SessionDriver
from .selector import TestQueue, WeightedSelector
from .set_store import SetStore, dumps_set, loads_set

__all__ = [
    # Data model
    "Card",
    "CardFilter",
    "CardSet",
    "SessionKind",
    "SessionProgress",
    "create_set",
    "ensure_method_matches",
    # Persistence
    "SetStore",
    "dumps_set",
    "loads_set",
    # Selection
    "WeightedSelector",
    "TestQueue",
    # Runs
    "SessionDriver",
    "RunOptions",
    "RunState",
    "RunSummary",
    "ReviewPrompt",
]
