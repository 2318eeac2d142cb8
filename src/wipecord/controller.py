"""
Run Controller

Orchestrates a wipe run: asks the discovery strategy for batches, runs the
sequencer on each candidate, paginates on empty batches and stops after three
empty batches in a row or when the optional limit is reached.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .errors import WipecordError
from .locator import MessageLocator
from .pagination import SCAN, SEARCH, STRATEGY_KINDS, PaginationDriver
from .selector_resolver import SelectorResolver
from .sequencer import InteractionSequencer, MessageOutcome
from .strategies import SearchSession, build_strategy
from .timing import Settler

logger = logging.getLogger(__name__)

MAX_CONSECUTIVE_EMPTY_BATCHES = 3

OutcomeListener = Callable[[MessageOutcome], None]


@dataclass
class RunOptions:
    """Parameters for one run, as collected by the command line shell"""

    mode: str = SCAN
    target: str | None = None
    server: str | None = None
    author: str | None = None
    limit: int = 0
    auto_confirm: bool = False

    def validate(self):
        """
        Check option combinations

        Raises:
            ValueError: On an unknown mode, a negative limit, incomplete search
                options, or options that do not apply to the chosen mode
        """
        if self.mode not in STRATEGY_KINDS:
            raise ValueError(f"Unknown mode '{self.mode}' (expected one of {STRATEGY_KINDS})")
        if self.limit < 0:
            raise ValueError("Limit must be 0 (unlimited) or a positive number")
        if self.mode == SEARCH and not (self.server and self.author):
            raise ValueError("Search mode needs both a server URL and an author")
        if self.mode == SEARCH and self.target:
            raise ValueError("A channel URL only applies to scan mode, search mode uses the server URL")
        if self.mode == SCAN and (self.server or self.author):
            raise ValueError("Server and author only apply to search mode")


@dataclass
class RunState:
    """Mutable counters for one run, owned by the controller"""

    strategy_kind: str
    limit: int = 0
    processed_count: int = 0
    failed_count: int = 0
    consecutive_empty_batches: int = 0
    processed_ids: set[str] = field(default_factory=set)

    @property
    def exhausted(self) -> bool:
        return self.consecutive_empty_batches >= MAX_CONSECUTIVE_EMPTY_BATCHES

    @property
    def limit_reached(self) -> bool:
        return self.limit > 0 and self.processed_count >= self.limit

    @property
    def terminal(self) -> bool:
        return self.exhausted or self.limit_reached


@dataclass
class RunSummary:
    processed_count: int
    failed_count: int
    exhausted: bool = False
    limit_reached: bool = False
    interrupted: bool = False


class RunController:
    """Drive discovery, sequencing and pagination until the run is done"""

    def __init__(
        self,
        sequencer: InteractionSequencer,
        pagination: PaginationDriver,
        settler: Settler,
        limit: int = 0,
        page: Any | None = None,
    ):
        """
        Initialize controller

        Args:
            sequencer: Per-message wipe/delete sequencer
            pagination: Pagination driver
            settler: Settle timing policy (between_messages delay)
            limit: Stop after this many successful deletions (0 = unlimited)
            page: Live page whose remote object handles are released after each batch
        """
        self.sequencer = sequencer
        self.pagination = pagination
        self.settler = settler
        self.limit = limit
        self.page = page
        self.listeners: list[OutcomeListener] = []
        self.state: RunState | None = None

    def add_listener(self, listener: OutcomeListener):
        """Register a callback receiving every MessageOutcome"""
        self.listeners.append(listener)

    def run(self, strategy) -> RunSummary:
        """
        Run until discovery is exhausted, the limit is hit, or Ctrl-C

        Args:
            strategy: ScanStrategy or SearchStrategy

        Returns:
            RunSummary with counts and the reason the run ended
        """
        state = RunState(strategy_kind=strategy.kind, limit=self.limit)
        self.state = state
        interrupted = False

        logger.info("🔍 Scanning for your messages...")

        try:
            strategy.prepare()

            while not state.terminal:
                try:
                    self._run_batch(strategy, state)
                finally:
                    self._release_handles()

        except KeyboardInterrupt:
            interrupted = True
            logger.info("Run interrupted by user")

        if state.exhausted:
            logger.info("✅ No more messages found. Stopping.")

        summary = RunSummary(
            processed_count=state.processed_count,
            failed_count=state.failed_count,
            exhausted=state.exhausted,
            limit_reached=state.limit_reached,
            interrupted=interrupted,
        )
        logger.info(f"Run finished: processed={summary.processed_count}, failed={summary.failed_count}")
        return summary

    def _run_batch(self, strategy, state: RunState):
        """Process one discovery batch, or paginate when it comes back empty"""
        batch = self._next_batch(strategy, state)

        if not batch:
            state.consecutive_empty_batches += 1
            logger.info(
                f"⏳ No new messages found "
                f"({state.consecutive_empty_batches}/{MAX_CONSECUTIVE_EMPTY_BATCHES})"
            )
            if not state.exhausted:
                self._paginate(strategy.kind)
            return

        state.consecutive_empty_batches = 0

        for handle in batch:
            logger.info(f"🗑️  Processing message {handle.message_id}...")
            outcome = self.sequencer.run(handle)
            self._record(state, outcome)

            if state.limit_reached:
                logger.info(f"✅ Reached limit of {state.limit} messages")
                return

            # Rate limiting, applied whatever the outcome
            self.settler.wait("between_messages")

    def _release_handles(self):
        # Handles from the finished batch are never reused
        if self.page is not None:
            self.page.release_handles()

    def _next_batch(self, strategy, state: RunState):
        try:
            return strategy.next_batch(state.processed_ids)
        except WipecordError as e:
            logger.warning(f"Discovery failed, treating as empty batch: {e}")
            return []

    def _paginate(self, strategy_kind: str):
        try:
            self.pagination.advance(strategy_kind)
        except WipecordError as e:
            logger.warning(f"Pagination failed: {e}")

    def _record(self, state: RunState, outcome: MessageOutcome):
        if outcome.success:
            state.processed_ids.add(outcome.message_id)
            state.processed_count += 1
            logger.info(f"✅ Deleted message {outcome.message_id} ({state.processed_count} total)")
        else:
            state.failed_count += 1

        for listener in self.listeners:
            listener(outcome)


def wipe(
    page,
    resolver: SelectorResolver,
    settler: Settler,
    options: RunOptions,
    listeners: tuple[OutcomeListener, ...] = (),
) -> RunSummary:
    """
    Build the engine for a set of run options and run it

    Args:
        page: Live page (document() / navigate()), already logged in
        resolver: Selector resolver
        settler: Settle timing policy
        options: Validated run options
        listeners: Callbacks receiving each MessageOutcome

    Returns:
        RunSummary
    """
    options.validate()

    locator = MessageLocator(resolver)
    session = None
    if options.mode == SEARCH:
        session = SearchSession(server_url=options.server, author=options.author)

    strategy = build_strategy(
        options.mode,
        page,
        resolver,
        locator,
        settler,
        channel_url=options.target,
        session=session,
    )

    controller = RunController(
        InteractionSequencer(page, resolver, settler),
        PaginationDriver(page, resolver, settler),
        settler,
        limit=options.limit,
        page=page,
    )
    for listener in listeners:
        controller.add_listener(listener)

    return controller.run(strategy)
