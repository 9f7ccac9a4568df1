"""Autosave — a fixed-period timer that forces a full snapshot write.

Interactive updates skip persistence (``persist=False``) to keep drag
frames and telemetry cheap.  The autosave timer is the backstop: every
``interval`` ticks it saves the whole snapshot regardless of what the
individual writes asked for.

The timer counts ticks rather than reading a clock, so its behaviour
is deterministic.  The desktop drives it with one tick per second.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nexus_shell.state.store import Store

DEFAULT_AUTOSAVE_INTERVAL = 30


class AutosaveTimer:
    """Save the store's snapshot every ``interval`` ticks."""

    def __init__(self, store: Store, *, interval: int = DEFAULT_AUTOSAVE_INTERVAL) -> None:
        """Create a timer bound to *store*.

        Raises:
            ValueError: If the interval is not positive.

        """
        self._store = store
        self._interval = interval
        self._validate(interval)
        self._counter = 0
        self._saves = 0
        self._failures = 0
        self._enabled = True

    @staticmethod
    def _validate(value: int) -> None:
        if value <= 0:
            msg = f"Interval must be positive, got {value}"
            raise ValueError(msg)

    @property
    def interval(self) -> int:
        """Return the number of ticks between saves."""
        return self._interval

    @interval.setter
    def interval(self, value: int) -> None:
        """Change the tick interval and restart the count."""
        self._validate(value)
        self._interval = value
        self._counter = 0

    @property
    def saves(self) -> int:
        """Return how many times the timer has fired."""
        return self._saves

    @property
    def failures(self) -> int:
        """Return how many fired saves the store reported as failed."""
        return self._failures

    @property
    def enabled(self) -> bool:
        """Return whether ticks currently advance the timer."""
        return self._enabled

    def stop(self) -> None:
        """Stop firing; ticks are ignored until ``start()``."""
        self._enabled = False

    def start(self) -> None:
        """Resume firing with a fresh count."""
        self._enabled = True
        self._counter = 0

    def tick(self) -> bool:
        """Advance the timer by one tick.

        Returns:
            True if the timer fired (a save was attempted) this tick.

        """
        if not self._enabled:
            return False
        self._counter += 1
        if self._counter < self._interval:
            return False
        self._counter = 0
        self._saves += 1
        if not self._store.save_to_storage():
            self._failures += 1
        return True
