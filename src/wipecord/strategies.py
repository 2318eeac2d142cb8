"""
Discovery Strategies

Two ways of finding messages to wipe, behind the same batch interface:

- ScanStrategy walks the currently open channel, returning every owned,
  unprocessed message that is rendered.
- SearchStrategy runs a `from: <author>` search in a server, jumps to the
  first result and returns that single message. The jump closes the result
  list, so every batch is a singleton and the query is re-opened before the
  next one.
"""

import logging
from collections.abc import Set
from dataclasses import dataclass
from typing import Any

from .locator import MessageHandle, MessageLocator
from .pagination import SCAN, SEARCH
from .selector_resolver import SelectorResolver
from .timing import Settler

logger = logging.getLogger(__name__)


class ScanStrategy:
    """Batch = every candidate rendered in the current channel"""

    kind = SCAN

    def __init__(
        self,
        page: Any,
        locator: MessageLocator,
        settler: Settler,
        channel_url: str | None = None,
    ):
        self.page = page
        self.locator = locator
        self.settler = settler
        self.channel_url = channel_url

    def prepare(self):
        """Open the target channel, or stay on the current page if none was given"""
        if self.channel_url:
            logger.info(f"🔗 Navigating to: {self.channel_url}")
            self.page.navigate(self.channel_url)
            self.settler.wait("navigation")

    def next_batch(self, processed: Set[str]) -> list[MessageHandle]:
        return self.locator.find_candidates(self.page.document(), processed)


@dataclass
class SearchSession:
    """Server and author a search-mode run is scoped to"""

    server_url: str
    author: str

    @property
    def query(self) -> str:
        return f"from: {self.author}"


class SearchStrategy:
    """Batch = the message behind the first author-scoped search result"""

    kind = SEARCH

    def __init__(
        self,
        page: Any,
        resolver: SelectorResolver,
        locator: MessageLocator,
        settler: Settler,
        session: SearchSession,
    ):
        self.page = page
        self.resolver = resolver
        self.locator = locator
        self.settler = settler
        self.session = session

        self.query_open = False
        self.queries_issued = 0
        self._last_visited: str | None = None
        self._repeat_visits = 0

    def prepare(self):
        logger.info(f"🔗 Navigating to server: {self.session.server_url}")
        self.page.navigate(self.session.server_url)
        self.settler.wait("navigation")

    def open_query(self):
        """
        Type the author query into the search bar and submit it

        Raises:
            ElementNotFound: If the search bar cannot be found
        """
        search = self.resolver.require("search-input", self.page.document())
        search.click()
        search.replace_text(self.session.query)
        self.settler.wait("input")
        search.press_key("Enter")
        self.settler.wait("search")

        self.query_open = True
        self.queries_issued += 1
        logger.debug(f"Issued search '{self.session.query}' ({self.queries_issued} total)")

    def next_batch(self, processed: Set[str]) -> list[MessageHandle]:
        """
        Jump to the first search result and return its message if it is a candidate

        Args:
            processed: Ids already wiped and deleted this run

        Returns:
            A single-element list, or an empty list if there was no usable result
        """
        if not self.query_open:
            self.open_query()

        result = self.resolver.resolve("search-result", self.page.document())
        if result is None:
            logger.debug("Search returned no results")
            return []

        result.hover()
        jump = self.resolver.resolve("search-jump", result) or result
        jump.click()
        # Jumping replaces the result list with the channel view
        self.query_open = False
        self.settler.wait("navigation")

        message = self.resolver.resolve("jumped-message", self.page.document())
        if message is None:
            logger.warning("Could not find the message the search result jumped to")
            return []

        handle = self.locator.qualify(message, processed)
        if handle is None:
            return []

        self._track_visit(handle.message_id)
        return [handle]

    def _track_visit(self, message_id: str):
        # Always taking the first result means a message that keeps failing
        # is revisited until the operator stops the run
        if message_id == self._last_visited:
            self._repeat_visits += 1
            logger.warning(
                f"Search keeps returning message {message_id} ({self._repeat_visits + 1} visits)"
            )
        else:
            self._last_visited = message_id
            self._repeat_visits = 0


def build_strategy(
    kind: str,
    page: Any,
    resolver: SelectorResolver,
    locator: MessageLocator,
    settler: Settler,
    channel_url: str | None = None,
    session: SearchSession | None = None,
):
    """
    Create the discovery strategy for a run mode

    Args:
        kind: "scan" or "search"
        page: Live page (document() / navigate())
        resolver: Selector resolver
        locator: Message locator
        settler: Settle timing policy
        channel_url: Channel to open first (scan mode, optional)
        session: Server and author (search mode, required)

    Returns:
        ScanStrategy or SearchStrategy
    """
    if kind == SCAN:
        return ScanStrategy(page, locator, settler, channel_url)
    if kind == SEARCH:
        if session is None:
            raise ValueError("Search mode needs a server URL and an author")
        return SearchStrategy(page, resolver, locator, settler, session)
    raise ValueError(f"Unknown strategy kind: {kind}")
