"""
Session Driver: the learn/test state machine.

NOT_STARTED -> ACTIVE -> COMPLETED | ABORTED

Each iteration draws a card, waits for a response, applies it (method
update in learn runs, star bookkeeping in test runs) and persists the whole
set straight away. A crash therefore loses at most the response in flight.

A persisted session of the same kind and filter is resumed unless a reset
is requested; any other session is discarded. The session block is cleared
once the run completes (pool exhausted or review limit reached).
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from src.core.exceptions import CancelledError, EmptySetError, InvalidResponseError
from src.learning.methods import Method

from .card_set import Card, CardFilter, CardSet, SessionKind, SessionProgress, ensure_method_matches
from .selector import TestQueue, WeightedSelector
from .set_store import SetStore

DEFAULT_TEST_RESPONSES = ("y", "n")


class RunState(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class RunOptions:
    """How a single learn or test invocation behaves."""

    kind: SessionKind
    card_filter: CardFilter = CardFilter.NONE
    max_count: int | None = None
    reset: bool = False

    # Test runs
    mark_starred: bool = True
    mark_unstarred: bool = True
    static: bool = False

    # Learn runs
    mutate_difficulty: bool = True


@dataclass
class ReviewPrompt:
    """What the caller needs to present one card."""

    card_id: str
    question: str
    answer: str
    difficult: bool
    starred: bool
    responses: tuple[str, ...]
    number: int
    max_count: int | None = None


@dataclass
class RunSummary:
    """Outcome of one invocation."""

    state: RunState
    reviewed: int
    session_reviewed: int
    resumed: bool


Responder = Callable[[ReviewPrompt], str]


class SessionDriver:
    """
    Drives one learn or test run over a set.

    Usage:
        driver = SessionDriver(card_set, store, RunOptions(kind=SessionKind.TEST))
        summary = driver.run(ask_user)
    """

    def __init__(
        self,
        card_set: CardSet,
        store: SetStore,
        options: RunOptions,
        method: Method | None = None,
        rng: random.Random | None = None,
        test_responses: tuple[str, str] = DEFAULT_TEST_RESPONSES,
    ):
        """
        Initialize the driver.

        Args:
            card_set: Set to run; mutated in place
            store: Where the set is persisted after every review
            options: Run options
            method: Learning method (required for learn runs)
            rng: Random source for selection
            test_responses: (correct, incorrect) responses for test runs

        Raises:
            MethodMismatchError: method is not the one bound to the set
        """
        if options.kind == SessionKind.LEARN:
            if method is None:
                raise ValueError("learn runs need a method")
            ensure_method_matches(card_set, method.name)

        self.card_set = card_set
        self.store = store
        self.options = options
        self.method = method
        self.rng = rng or random.Random()
        self.test_responses = test_responses

        self.state = RunState.NOT_STARTED
        self.resumed = False
        self.reviewed = 0
        self.session_reviewed = 0
        self.current: Card | None = None

        self._selector = WeightedSelector(method, self.rng) if method is not None else None
        self._queue = TestQueue(self.rng)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_learn(self) -> bool:
        return self.options.kind == SessionKind.LEARN

    @property
    def responses(self) -> tuple[str, ...]:
        """Responses accepted by submit(), in display order."""
        if self.is_learn:
            return self.method.responses
        return self.test_responses

    @property
    def progress(self) -> SessionProgress:
        if self.card_set.session is None:
            raise RuntimeError("run has not been started")
        return self.card_set.session

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> bool:
        """
        Resume a matching session or start a fresh one.

        Returns:
            True if a previous session was resumed
        """
        if self.state != RunState.NOT_STARTED:
            raise RuntimeError(f"cannot start a run in state {self.state.value}")

        kind = self.options.kind
        card_filter = self.options.card_filter
        existing = self.card_set.session

        if existing is not None and not self.options.reset and existing.matches(kind, card_filter):
            self.resumed = True
            logger.info(
                f"Resuming {kind.value} run ({existing.reviewed} reviewed so far, "
                f"filter={card_filter.value})"
            )
        else:
            if existing is not None:
                logger.info(f"Discarding previous {existing.kind.value} run")
            queue = None if self.is_learn else self._queue.build(self.card_set, card_filter)
            self.card_set.session = SessionProgress(kind=kind, filter=card_filter, queue=queue)
            logger.info(f"Starting {kind.value} run (filter={card_filter.value})")

        self.session_reviewed = self.card_set.session.reviewed
        self.state = RunState.ACTIVE
        self._persist()
        return self.resumed

    def next_card(self) -> Card | None:
        """
        Draw the next card, or complete the run.

        Returns:
            The card to present, or None once the run has completed
        """
        self._require_active()
        progress = self.progress

        max_count = self.options.max_count
        if max_count is not None and progress.reviewed >= max_count:
            logger.info(f"Review limit of {max_count} reached")
            self._complete()
            return None

        try:
            if self.is_learn:
                card = self._selector.draw(self.card_set, progress.filter)
            else:
                card = self._queue.peek(self.card_set, progress)
        except EmptySetError:
            logger.info("Nothing left to review")
            self._complete()
            return None

        self.current = card
        return card

    def submit(self, response: str) -> None:
        """
        Apply a response to the current card and persist.

        Raises:
            InvalidResponseError: response not accepted by this run (nothing changes)
            ScriptRuntimeError / SchemaError: the method failed (nothing changes)
        """
        self._require_active()
        card = self.current
        if card is None:
            raise RuntimeError("no card is awaiting a response")

        if self.is_learn:
            self._apply_learn(card, response)
        else:
            self._apply_test(card, response)
            TestQueue.pop(self.progress, card.id)

        self.progress.reviewed += 1
        self.reviewed += 1
        self.session_reviewed = self.progress.reviewed
        self.current = None
        self._persist()

    def cancel(self) -> None:
        """Stop early, keeping the session for a later resume."""
        if self.state != RunState.ACTIVE:
            return
        self.state = RunState.ABORTED
        self.current = None
        self._persist()
        logger.warning(f"Run cancelled after {self.reviewed} reviews; progress saved")

    def run(self, respond: Responder) -> RunSummary:
        """
        Run until completion or cancellation.

        Args:
            respond: Called with each prompt; returns a response or raises CancelledError

        Returns:
            RunSummary
        """
        if self.state == RunState.NOT_STARTED:
            self.start()

        while self.state == RunState.ACTIVE:
            card = self.next_card()
            if card is None:
                break
            try:
                response = respond(self.prompt_for(card))
            except CancelledError:
                self.cancel()
                break
            self.submit(response)

        return self.summary()

    def summary(self) -> RunSummary:
        return RunSummary(
            state=self.state,
            reviewed=self.reviewed,
            session_reviewed=self.session_reviewed,
            resumed=self.resumed,
        )

    def prompt_for(self, card: Card) -> ReviewPrompt:
        return ReviewPrompt(
            card_id=card.id,
            question=card.question,
            answer=card.answer,
            difficult=card.difficult,
            starred=card.starred,
            responses=self.responses,
            number=self.progress.reviewed + 1,
            max_count=self.options.max_count,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _apply_learn(self, card: Card, response: str) -> None:
        new_data, new_difficult = self.method.adjust_card(
            response, card.data, card.difficult, card_id=card.id
        )
        card.data = new_data
        if self.options.mutate_difficulty:
            card.difficult = new_difficult
        logger.debug(f"Adjusted card {card.id} (response={response}, difficult={card.difficult})")

    def _apply_test(self, card: Card, response: str) -> None:
        correct, incorrect = self.test_responses
        if response not in self.test_responses:
            raise InvalidResponseError(
                f"invalid response {response!r} (expected {correct}/{incorrect})",
                card_id=card.id,
            )
        if self.options.static:
            return
        if response == incorrect and self.options.mark_starred:
            card.starred = True
        elif response == correct and card.starred and self.options.mark_unstarred:
            card.starred = False

    def _complete(self) -> None:
        self.state = RunState.COMPLETED
        self.current = None
        self.card_set.clear_session()
        self._persist()
        logger.info(f"Run completed after {self.reviewed} reviews")

    def _persist(self) -> None:
        self.store.save(self.card_set)

    def _require_active(self) -> None:
        if self.state != RunState.ACTIVE:
            raise RuntimeError(f"run is not active (state {self.state.value})")
