"""
Selector Resolver

Maps semantic UI targets ("more-actions", "confirm", ...) to ordered chains of
concrete matchers and resolves them against a DOM scope. The chains are data,
loaded from a YAML table, so UI drift is fixed by editing the table rather
than the engine.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .dom import Element
from .errors import ElementNotFound, SelectorTableError

logger = logging.getLogger(__name__)

DEFAULT_TABLE_PATH = Path(__file__).parent / "selectors.yaml"

# Targets the engine looks up; a table missing any of these is rejected
REQUIRED_TARGETS = (
    "message",
    "action-container",
    "more-actions",
    "edit-direct",
    "edit-menu-item",
    "editor",
    "message-editor",
    "delete-menu-item",
    "confirm",
    "message-scroller",
    "search-input",
    "search-results-scroller",
    "search-result",
    "search-jump",
    "jumped-message",
    "login-marker",
)


@dataclass(frozen=True)
class Matcher:
    """One lookup strategy: a CSS selector, optionally filtered by exact text"""

    css: str
    text: tuple[str, ...] = ()

    def match(self, scope: Element) -> list[Element]:
        elements = scope.query_all(self.css)
        if self.text:
            elements = [el for el in elements if el.text() in self.text]
        return elements

    def __str__(self) -> str:
        if self.text:
            return f"{self.css} (text in {list(self.text)})"
        return self.css


SelectorChain = tuple[Matcher, ...]


class SelectorResolver:
    """Resolve semantic targets through their selector chains"""

    def __init__(
        self,
        table: dict[str, SelectorChain],
        id_attributes: tuple[str, ...] = ("id", "data-list-item-id"),
    ):
        """
        Initialize resolver

        Args:
            table: Target name -> ordered matcher chain
            id_attributes: Attributes carrying a message id, in priority order
        """
        missing = [target for target in REQUIRED_TARGETS if not table.get(target)]
        if missing:
            raise SelectorTableError(f"Selector table is missing targets: {', '.join(missing)}")
        if not id_attributes:
            raise SelectorTableError("Selector table lists no message id attributes")

        self.table = table
        self.id_attributes = tuple(id_attributes)

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> "SelectorResolver":
        """
        Load a resolver from a YAML selector table

        Args:
            path: Table file (defaults to the packaged selectors.yaml)

        Raises:
            SelectorTableError: If the file is unreadable or malformed
        """
        path = Path(path).expanduser() if path else DEFAULT_TABLE_PATH

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise SelectorTableError(f"Cannot read selector table {path}: {e}") from e
        except yaml.YAMLError as e:
            raise SelectorTableError(f"Invalid YAML in selector table {path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("targets"), dict):
            raise SelectorTableError(f"Selector table {path} has no 'targets' mapping")

        table = {name: _parse_chain(name, entries) for name, entries in data["targets"].items()}
        id_attributes = tuple(data.get("message_id_attributes") or ("id", "data-list-item-id"))

        logger.debug(f"Loaded {len(table)} selector targets from {path}")
        return cls(table, id_attributes)

    def chain(self, target: str) -> SelectorChain:
        if target not in self.table:
            raise KeyError(f"Unknown selector target: {target}")
        return self.table[target]

    def resolve_all(self, target: str, scope: Element) -> list[Element]:
        """
        Return every element matched by the first matcher that matches anything

        Args:
            target: Semantic target name
            scope: Element or document to search under

        Returns:
            Matched elements in document order, or an empty list
        """
        if scope is None:
            raise ValueError(f"Cannot resolve '{target}' without a scope")

        for matcher in self.chain(target):
            elements = matcher.match(scope)
            if elements:
                logger.debug(f"Resolved {target} via {matcher} ({len(elements)} found)")
                return elements

        return []

    def resolve(self, target: str, scope: Element) -> Element | None:
        """Return the first element for a target, or None if the chain is exhausted"""
        elements = self.resolve_all(target, scope)
        return elements[0] if elements else None

    def require(self, target: str, scope: Element) -> Element:
        element = self.resolve(target, scope)
        if element is None:
            raise ElementNotFound(target)
        return element

    def message_id(self, element: Element) -> str | None:
        """Read a message id from the first id attribute present on the element"""
        for name in self.id_attributes:
            value = element.attribute(name)
            if value:
                return value
        return None

    def describe(self, target: str, scope: Element) -> list[dict[str, Any]]:
        """
        Report how many elements each matcher of a target finds

        Unlike resolve, this evaluates the whole chain. Used for diagnosing UI
        drift.
        """
        return [
            {"matcher": str(matcher), "count": len(matcher.match(scope))}
            for matcher in self.chain(target)
        ]


def _parse_chain(target: str, entries: Any) -> SelectorChain:
    if not isinstance(entries, list) or not entries:
        raise SelectorTableError(f"Target '{target}' must be a non-empty list of matchers")

    matchers = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("css"):
            raise SelectorTableError(f"Matcher for '{target}' needs a 'css' key: {entry!r}")

        text = entry.get("text") or ()
        if isinstance(text, str):
            text = (text,)
        matchers.append(Matcher(css=entry["css"], text=tuple(text)))

    return tuple(matchers)
