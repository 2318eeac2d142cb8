"""
Settle Timings

Fixed waits inserted after UI actions. Discord gives no observable completion
signal for hover fade-ins, menu mounts or edit round-trips, so every step
waits a named, configurable interval instead. These are approximations, not
guarantees.
"""

import logging
import time
from dataclasses import dataclass, fields, replace
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettleTimings:
    """Seconds to wait after each kind of UI action"""

    reveal: float = 0.3
    hover: float = 0.3
    menu: float = 0.5
    editor_mount: float = 0.5
    input: float = 0.3
    commit: float = 1.0
    dialog: float = 0.5
    confirm: float = 1.0
    between_messages: float = 1.5
    pagination: float = 2.0
    search: float = 1.5
    navigation: float = 2.0
    launch_poll: float = 1.0
    login_poll: float = 1.0
    login_settle: float = 3.0

    @classmethod
    def immediate(cls) -> "SettleTimings":
        """All-zero timings, for tests and fake DOMs"""
        return cls(**{f.name: 0.0 for f in fields(cls)})

    def with_overrides(self, overrides: dict[str, Any] | None) -> "SettleTimings":
        """
        Return a copy with some timings replaced

        Unknown keys and non-numeric or negative values are ignored with a
        warning so a stale config file never stops a run.

        Args:
            overrides: Mapping of timing name to seconds

        Returns:
            New SettleTimings instance
        """
        if not overrides:
            return self

        known = {f.name for f in fields(self)}
        changes: dict[str, float] = {}

        for name, value in overrides.items():
            if name not in known:
                logger.warning(f"Ignoring unknown timing '{name}'")
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                logger.warning(f"Ignoring invalid value for timing '{name}': {value!r}")
                continue
            changes[name] = float(value)

        return replace(self, **changes)


class Settler:
    """Applies SettleTimings through an injectable sleep function"""

    def __init__(
        self,
        timings: SettleTimings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.timings = timings or SettleTimings()
        self._sleep = sleep

    def wait(self, step: str):
        """Wait the configured interval for a step name (e.g. "commit")"""
        seconds = getattr(self.timings, step)
        if seconds > 0:
            self._sleep(seconds)
