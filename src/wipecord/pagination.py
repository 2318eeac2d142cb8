"""
Pagination Driver

Makes more messages visible when a scan comes up empty: channel scans jump
the message pane to the top so Discord mounts older messages, search scans
jump the results pane to the bottom to request the next page of results.
"""

import logging
from typing import Any

from .selector_resolver import SelectorResolver
from .timing import Settler

logger = logging.getLogger(__name__)

SCAN = "scan"
SEARCH = "search"
STRATEGY_KINDS = (SCAN, SEARCH)


class PaginationDriver:
    """Scroll the relevant pane to load more candidates"""

    def __init__(self, page: Any, resolver: SelectorResolver, settler: Settler):
        self.page = page
        self.resolver = resolver
        self.settler = settler

    def advance(self, strategy_kind: str):
        """
        Scroll for more content and wait for it to mount

        Success is not reported; the next scan shows whether anything loaded.

        Args:
            strategy_kind: "scan" or "search"
        """
        if strategy_kind == SCAN:
            target, edge = "message-scroller", "top"
        elif strategy_kind == SEARCH:
            target, edge = "search-results-scroller", "bottom"
        else:
            raise ValueError(f"Unknown strategy kind: {strategy_kind}")

        pane = self.resolver.resolve(target, self.page.document())
        if pane is None:
            logger.warning(f"No {target} found, waiting without scrolling")
        else:
            pane.scroll_to(edge)
            logger.debug(f"Scrolled {target} to {edge}")

        self.settler.wait("pagination")
