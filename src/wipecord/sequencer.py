"""
Interaction Sequencer

Drives one message through the wipe-and-delete sequence:

    reveal -> open menu -> edit -> blank text -> save
           -> reveal -> open menu -> delete -> confirm

Each step resolves its control through the selector table. A control that
cannot be found, or a DOM call that fails (the virtualized list may recycle
the element mid-run), ends the sequence for this message only.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .dom import Element
from .errors import ElementNotFound, InteractionException, WipecordError
from .locator import MessageHandle
from .selector_resolver import SelectorResolver
from .timing import Settler

logger = logging.getLogger(__name__)

# Discord rejects empty edits, a single space is the smallest accepted content
WIPE_TEXT = " "


class State(Enum):
    START = "start"
    REVEALED = "revealed"
    MENU_OPEN_1 = "menu_open_1"
    EDIT_OPEN = "edit_open"
    TEXT_CLEARED = "text_cleared"
    EDIT_SAVED = "edit_saved"
    REVEALED_2 = "revealed_2"
    MENU_OPEN_2 = "menu_open_2"
    DELETE_CONFIRM_OPEN = "delete_confirm_open"
    DELETED = "deleted"
    DONE = "done"
    FAILED = "failed"


@dataclass
class MessageOutcome:
    """Result of one sequencer run"""

    message_id: str
    success: bool
    # DONE, or the last state reached before failing
    state: State
    reason: str = ""


class InteractionSequencer:
    """Wipe and delete a single message through the UI"""

    def __init__(self, page: Any, resolver: SelectorResolver, settler: Settler):
        """
        Initialize sequencer

        Args:
            page: Object exposing document() for the live tab
            resolver: Selector resolver
            settler: Settle timing policy
        """
        self.page = page
        self.resolver = resolver
        self.settler = settler
        self.state = State.START

    def run(self, handle: MessageHandle) -> MessageOutcome:
        """
        Wipe and delete one message

        Never raises for per-message problems; they are reported as a failed
        outcome.

        Args:
            handle: Candidate message

        Returns:
            MessageOutcome with success flag and the state reached
        """
        self.state = State.START
        message_id = handle.message_id

        try:
            self._wipe_and_delete(handle.element)
        except ElementNotFound as e:
            return self._failed(message_id, f"{e.target} not found")
        except InteractionException as e:
            return self._failed(message_id, f"interaction failed: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error processing message {message_id}")
            return self._failed(message_id, f"unexpected error: {e}")

        logger.debug(f"Message {message_id} wiped and deleted")
        return MessageOutcome(message_id, True, State.DONE)

    def _advance(self, state: State):
        logger.debug(f"  {self.state.value} -> {state.value}")
        self.state = state

    def _reveal(self, element: Element):
        """Scroll the message to the viewport center and hover it so its toolbar shows"""
        element.scroll_into_view()
        self.settler.wait("reveal")
        element.hover()
        self.settler.wait("hover")

    def _wipe_and_delete(self, element: Element):
        document = self.page.document()

        # Wipe
        self._reveal(element)
        self._advance(State.REVEALED)

        more = self.resolver.require("more-actions", element)
        edit = self.resolver.resolve("edit-direct", element)
        if edit is None:
            more.click()
            self.settler.wait("menu")
            edit = self.resolver.require("edit-menu-item", document)
        self._advance(State.MENU_OPEN_1)

        edit.click()
        self.settler.wait("editor_mount")
        self._advance(State.EDIT_OPEN)

        editor = self.resolver.resolve("editor", element) or self.resolver.resolve(
            "message-editor", document
        )
        if editor is None:
            # Edit could not be confirmed, still delete
            logger.warning("Editor did not open, deleting without wipe")
        else:
            editor.replace_text(WIPE_TEXT)
            self.settler.wait("input")
            self._advance(State.TEXT_CLEARED)

            editor.press_key("Enter")
            self.settler.wait("commit")
            self._advance(State.EDIT_SAVED)

        # Delete
        self._reveal(element)
        self._advance(State.REVEALED_2)

        more = self.resolver.require("more-actions", element)
        more.click()
        self.settler.wait("menu")
        self._advance(State.MENU_OPEN_2)

        delete = self.resolver.require("delete-menu-item", document)
        delete.click()
        self.settler.wait("dialog")
        self._advance(State.DELETE_CONFIRM_OPEN)

        confirm = self.resolver.require("confirm", document)
        confirm.click()
        self._advance(State.DELETED)
        self.settler.wait("confirm")
        self._advance(State.DONE)

    def _failed(self, message_id: str, reason: str) -> MessageOutcome:
        last_state = self.state
        self.state = State.FAILED
        logger.warning(f"❌ Message {message_id} failed after {last_state.value}: {reason}")
        self._dismiss()
        return MessageOutcome(message_id, False, last_state, reason)

    def _dismiss(self):
        """Close any menu or dialog left open by a failed sequence"""
        try:
            self.page.document().press_key("Escape")
        except WipecordError as e:
            logger.debug(f"Could not dismiss open menus: {e}")
