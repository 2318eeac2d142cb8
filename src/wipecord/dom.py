"""
DOM Adapter

Python-side handles to live DOM nodes in a Chrome tab, driven through
pychrome's Runtime and Input domains. Everything the engine does to the page
goes through the small Element interface defined here, so the engine can be
exercised against a fake DOM in tests.
"""

import logging
from typing import Any, Protocol

from pychrome.exceptions import PyChromeException

from .errors import InteractionException

logger = logging.getLogger(__name__)

# Every remote object the engine creates lives in this group, released per batch
OBJECT_GROUP = "wipecord"

# windowsVirtualKeyCode values for the keys the engine presses
KEY_CODES = {
    "Enter": 13,
    "Escape": 27,
}


class Element(Protocol):
    """What the engine needs from a DOM node (or the document)"""

    def query_all(self, css: str) -> list["Element"]: ...

    def attribute(self, name: str) -> str | None: ...

    def text(self) -> str: ...

    def scroll_into_view(self) -> None: ...

    def hover(self) -> None: ...

    def click(self) -> None: ...

    def replace_text(self, value: str) -> None: ...

    def press_key(self, key: str) -> None: ...

    def scroll_to(self, edge: str) -> None: ...


class CDPElement:
    """A DOM node held as a CDP remote object"""

    def __init__(self, tab: Any, object_id: str):
        """
        Initialize element handle

        Args:
            tab: Started pychrome Tab
            object_id: Runtime remote object id of the node
        """
        self.tab = tab
        self.object_id = object_id

    def __repr__(self) -> str:
        return f"<CDPElement {self.object_id}>"

    def _call(self, function: str, *args: Any, by_value: bool = True) -> dict[str, Any]:
        """
        Call a JS function with `this` bound to the node

        Raises:
            InteractionException: If CDP rejects the call or the function throws
        """
        try:
            result = self.tab.Runtime.callFunctionOn(
                objectId=self.object_id,
                functionDeclaration=function,
                arguments=[{"value": arg} for arg in args],
                returnByValue=by_value,
                objectGroup=OBJECT_GROUP,
            )
        except PyChromeException as e:
            raise InteractionException(f"CDP call failed: {e}") from e

        if result.get("exceptionDetails"):
            details = result["exceptionDetails"]
            message = details.get("exception", {}).get("description") or details.get("text")
            raise InteractionException(f"Page script error: {message}")

        return result.get("result", {})

    def _value(self, function: str, *args: Any) -> Any:
        return self._call(function, *args).get("value")

    def query_all(self, css: str) -> list["CDPElement"]:
        """
        Find descendants matching a CSS selector, in document order

        Args:
            css: CSS selector

        Returns:
            List of element handles (empty if none match)
        """
        array = self._call(
            "function(s) { return Array.from(this.querySelectorAll(s)); }",
            css,
            by_value=False,
        )
        array_id = array.get("objectId")
        if not array_id:
            return []

        try:
            props = self.tab.Runtime.getProperties(objectId=array_id, ownProperties=True)
        except PyChromeException as e:
            raise InteractionException(f"Could not read query result: {e}") from e

        # Element handles inherit the array's object group
        indexed = []
        for prop in props.get("result", []):
            name = prop.get("name", "")
            object_id = prop.get("value", {}).get("objectId")
            if name.isdigit() and object_id:
                indexed.append((int(name), object_id))

        try:
            self.tab.Runtime.releaseObject(objectId=array_id)
        except PyChromeException as e:
            logger.debug(f"Could not release query result: {e}")

        return [CDPElement(self.tab, object_id) for _, object_id in sorted(indexed)]

    def attribute(self, name: str) -> str | None:
        return self._value("function(n) { return this.getAttribute(n); }", name)

    def text(self) -> str:
        return self._value("function() { return (this.textContent || '').trim(); }") or ""

    def scroll_into_view(self):
        self._call("function() { this.scrollIntoView({behavior: 'auto', block: 'center'}); }")

    def hover(self):
        """Move the real mouse over the node and dispatch synthetic enter/over events"""
        rect = self._value(
            """
            function() {
                const r = this.getBoundingClientRect();
                return {x: r.left + r.width / 2, y: r.top + r.height / 2};
            }
            """
        )
        if rect:
            try:
                self.tab.Input.dispatchMouseEvent(type="mouseMoved", x=rect["x"], y=rect["y"])
            except PyChromeException as e:
                raise InteractionException(f"Mouse move failed: {e}") from e

        self._call(
            """
            function() {
                this.dispatchEvent(new MouseEvent('mouseenter', {bubbles: true}));
                this.dispatchEvent(new MouseEvent('mouseover', {bubbles: true}));
            }
            """
        )

    def click(self):
        self._call("function() { this.click(); }")

    def replace_text(self, value: str):
        """
        Select all editor content and replace it with `value`

        Uses Input.insertText so Discord's rich-text editor sees a real edit,
        then fires an input event so the field is marked dirty.
        """
        self._call(
            """
            function() {
                this.focus();
                const range = document.createRange();
                range.selectNodeContents(this);
                const selection = window.getSelection();
                selection.removeAllRanges();
                selection.addRange(range);
            }
            """
        )
        try:
            self.tab.Input.insertText(text=value)
        except PyChromeException as e:
            raise InteractionException(f"Text insert failed: {e}") from e

        self._call("function() { this.dispatchEvent(new Event('input', {bubbles: true})); }")

    def press_key(self, key: str):
        """Dispatch a keyDown/keyUp pair to the focused element"""
        code = KEY_CODES.get(key)
        if code is None:
            raise ValueError(f"Unsupported key: {key}")

        try:
            for event_type in ("keyDown", "keyUp"):
                self.tab.Input.dispatchKeyEvent(
                    type=event_type,
                    key=key,
                    code=key,
                    windowsVirtualKeyCode=code,
                    nativeVirtualKeyCode=code,
                )
        except PyChromeException as e:
            raise InteractionException(f"Key press failed: {e}") from e

    def scroll_to(self, edge: str):
        """Scroll a scrollable node to its "top" or "bottom" """
        if edge not in ("top", "bottom"):
            raise ValueError(f"Unknown scroll edge: {edge}")
        self._call(
            "function(edge) { this.scrollTop = edge === 'top' ? 0 : this.scrollHeight; }",
            edge,
        )


class CDPDocument(CDPElement):
    """The tab's current document"""

    @classmethod
    def current(cls, tab: Any) -> "CDPDocument":
        """
        Get a handle to the tab's document

        Raises:
            InteractionException: If the document cannot be evaluated
        """
        try:
            result = tab.Runtime.evaluate(
                expression="document", returnByValue=False, objectGroup=OBJECT_GROUP
            )
        except PyChromeException as e:
            raise InteractionException(f"Could not evaluate document: {e}") from e

        object_id = result.get("result", {}).get("objectId")
        if not object_id:
            raise InteractionException("Document has no remote object id")

        return cls(tab, object_id)

    def scroll_into_view(self):
        pass

    def hover(self):
        pass


def release_object_group(tab: Any):
    """
    Release every remote object the engine holds in the tab

    Handles created before the call are invalid afterwards. Failures are only
    logged; the page may be mid-navigation.
    """
    try:
        tab.Runtime.releaseObjectGroup(objectGroup=OBJECT_GROUP)
    except PyChromeException as e:
        logger.debug(f"Could not release object group: {e}")
