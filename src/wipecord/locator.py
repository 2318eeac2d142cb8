"""
Message Locator

Scans the rendered message list for messages the logged-in user owns (they
carry owner-only action controls) and that have not been processed yet in
this run.
"""

import logging
from collections.abc import Set
from dataclasses import dataclass

from .dom import Element
from .selector_resolver import SelectorResolver

logger = logging.getLogger(__name__)


@dataclass
class MessageHandle:
    """A rendered message element and its message id

    The element can be recycled by Discord's virtualized list at any moment,
    including while it is being processed.
    """

    element: Element
    message_id: str


class MessageLocator:
    """Find owned, unprocessed messages in a DOM scope"""

    def __init__(self, resolver: SelectorResolver):
        self.resolver = resolver

    def qualify(self, element: Element, processed: Set[str]) -> MessageHandle | None:
        """
        Check a single message element

        Args:
            element: Rendered message element
            processed: Ids already wiped and deleted this run

        Returns:
            MessageHandle if the message is ours and unprocessed, else None
        """
        if self.resolver.resolve("action-container", element) is None:
            return None

        message_id = self.resolver.message_id(element)
        if not message_id:
            logger.debug("Skipping owned message without an id attribute")
            return None

        if message_id in processed:
            return None

        return MessageHandle(element=element, message_id=message_id)

    def find_candidates(self, scope: Element, processed: Set[str]) -> list[MessageHandle]:
        """
        Scan a scope for candidate messages

        Args:
            scope: Document or message pane element
            processed: Ids already wiped and deleted this run

        Returns:
            Candidates in DOM (top-to-bottom) order
        """
        messages = self.resolver.resolve_all("message", scope)
        candidates: list[MessageHandle] = []
        seen: set[str] = set()

        for element in messages:
            handle = self.qualify(element, processed)
            if handle and handle.message_id not in seen:
                seen.add(handle.message_id)
                candidates.append(handle)

        logger.debug(f"Found {len(candidates)} candidates among {len(messages)} rendered messages")
        return candidates
