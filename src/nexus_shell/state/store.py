"""The central reactive state store.

Every piece of desktop state lives in one flat record of named fields
(see ``StoreField``).  The store is the single owner of that record:

- **Reads** go through ``get(key)`` and never fail.
- **Writes** go through ``set_state(updates)``, which shallow-merges the
  updates and then notifies subscribers *synchronously*, before
  ``set_state`` returns.  There is no batching and no deferred delivery.
- **Subscribers** register per field, or on ``"*"`` for every mutation.
  Each registration gets its own ``Subscription`` handle, so the same
  callback registered twice is two independent registrations.
- **Persistence**: by default every write saves the persisted snapshot.
  High-frequency writes (drag frames, telemetry) pass ``persist=False``.

Nested fields are owned too.  The file tree and window list are values
of the record; a component that changes them must write the field back
through ``set_state`` — mutating the tree in place without the write-back
changes the data but notifies nobody.

Notification order for one ``set_state`` call:

1. For each key in the update, in update order, every subscriber of
   that key in registration order, called as ``callback(new, previous)``.
2. Every wildcard subscriber, called as ``callback(state, previous_state)``.

A subscriber may itself call ``set_state``.  That nested call runs a
complete notification round of its own before the outer round resumes.
Values are read when each callback is called, so the last value any
subscriber receives for a field is the one the store holds.

Storage failures are logged and swallowed here: the in-memory record
stays authoritative for the session even when storage is full or gone.
"""

from __future__ import annotations

import json
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from nexus_shell.logging import Logger, LogLevel
from nexus_shell.state.defaults import TERMINAL_HISTORY_LIMIT, default_state
from nexus_shell.state.fields import WILDCARD, StoreField
from nexus_shell.state.persistence import STORAGE_KEY, build_snapshot, parse_snapshot
from nexus_shell.state.records import WindowConfig, WindowRecord, is_geometry
from nexus_shell.state.storage import MemoryStorage, Storage

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from typing import TypeAlias

    Listener: TypeAlias = Callable[[Any, Any], None]

_LOG_SOURCE = "storage"

_GEOMETRY_FIELDS = frozenset({"x", "y", "width", "height"})
_UPDATABLE_WINDOW_FIELDS = frozenset(
    {"title", "icon", "x", "y", "width", "height", "is_minimized", "is_maximized"}
)
"""Fields ``update_window`` may change.

Focus and z-order are excluded: they move only through ``focus_window``,
``add_window`` and ``remove_window`` so that at most one window is ever
focused.
"""


class Subscription:
    """Handle for one subscriber registration.

    Calling the handle (or ``unsubscribe()``) removes exactly this
    registration.  Removing twice is harmless.
    """

    def __init__(self, store: Store, key: str, callback: Listener) -> None:
        """Bind a callback to *key* on *store*."""
        self._store = store
        self._key = key
        self._callback = callback
        self._active = True

    @property
    def key(self) -> str:
        """Return the field (or wildcard) this subscription listens to."""
        return self._key

    @property
    def active(self) -> bool:
        """Return True until the subscription is removed."""
        return self._active

    def notify(self, current: Any, previous: Any) -> None:
        """Deliver one notification, unless already unsubscribed."""
        if self._active:
            self._callback(current, previous)

    def unsubscribe(self) -> None:
        """Remove this registration from the store."""
        if self._active:
            self._active = False
            self._store._discard(self)  # noqa: SLF001

    def __call__(self) -> None:
        """Alias for ``unsubscribe()``."""
        self.unsubscribe()


class Store:
    """Single owner of the desktop's state record.

    Construct one per desktop session and hand it to every component
    that reads or writes state.
    """

    def __init__(
        self,
        *,
        storage: Storage | None = None,
        logger: Logger | None = None,
        storage_key: str = STORAGE_KEY,
        history_limit: int = TERMINAL_HISTORY_LIMIT,
    ) -> None:
        """Create a store with every field at its default.

        Args:
            storage: Durable storage for the snapshot.  Defaults to an
                in-memory backend.
            logger: Where storage failures are reported.
            storage_key: The key the snapshot is stored under.
            history_limit: How many terminal commands to keep.

        """
        self._state: dict[str, Any] = default_state()
        self._listeners: dict[str, list[Subscription]] = {}
        self._storage: Storage = storage if storage is not None else MemoryStorage()
        self._logger = logger if logger is not None else Logger()
        self._storage_key = storage_key
        self._history_limit = history_limit

    @property
    def storage(self) -> Storage:
        """Return the durable storage backend."""
        return self._storage

    @property
    def logger(self) -> Logger:
        """Return the logger storage failures are reported to."""
        return self._logger

    # -- Core record access ---------------------------------------------------

    def get(self, key: str) -> Any:
        """Return the current value of *key*, or None for unknown keys."""
        return self._state.get(key)

    def get_state(self) -> dict[str, Any]:
        """Return a shallow copy of the whole record."""
        return dict(self._state)

    def set_state(self, updates: Mapping[str, Any], *, persist: bool = True) -> None:
        """Merge *updates* into the record and notify subscribers.

        Every key present in *updates* is notified, even when the new
        value is the very same object as the old one: writing back a
        tree that was mutated in place is how its owner announces the
        change.

        Args:
            updates: Field → new value.
            persist: When False, skip the storage write that would
                otherwise follow the notifications.

        """
        previous = self._state
        self._state = {**previous, **updates}

        # Values are read at delivery time: a nested set_state may have
        # moved a field on since this round started.
        for key in updates:
            for subscription in list(self._listeners.get(key, ())):
                subscription.notify(self._state.get(key), previous.get(key))

        for subscription in list(self._listeners.get(WILDCARD, ())):
            subscription.notify(dict(self._state), dict(previous))

        if persist:
            self.save_to_storage()

    def subscribe(self, key: str, callback: Listener) -> Subscription:
        """Register *callback* for changes to *key* (or ``"*"`` for all).

        Returns:
            A handle that removes this registration when called.

        """
        subscription = Subscription(self, key, callback)
        self._listeners.setdefault(key, []).append(subscription)
        return subscription

    def subscriber_count(self, key: str) -> int:
        """Return how many active registrations listen to *key*."""
        return len(self._listeners.get(key, ()))

    def _discard(self, subscription: Subscription) -> None:
        """Remove *subscription* by identity."""
        listeners = self._listeners.get(subscription.key, [])
        self._listeners[subscription.key] = [s for s in listeners if s is not subscription]

    # -- Counters and history -------------------------------------------------

    def bump_counter(self, key: str, delta: int = 1, *, persist: bool = True) -> None:
        """Add *delta* to a numeric field (a missing value counts as 0)."""
        current = self._state.get(key)
        base = current if isinstance(current, int) and not isinstance(current, bool) else 0
        self.set_state({key: base + delta}, persist=persist)

    def add_to_terminal_history(self, command: str) -> None:
        """Append *command* to the terminal history, keeping the newest entries."""
        history = [*self._state[StoreField.TERMINAL_HISTORY], command]
        self.set_state(
            {
                StoreField.TERMINAL_HISTORY: history[-self._history_limit :],
                StoreField.COMMANDS_EXECUTED: self._state[StoreField.COMMANDS_EXECUTED] + 1,
            }
        )

    # -- Window collection ----------------------------------------------------

    def windows(self) -> list[WindowRecord]:
        """Return the open windows in creation order."""
        return list(self._state[StoreField.WINDOWS])

    def find_window(self, window_id: int) -> WindowRecord | None:
        """Return the record for *window_id*, or None if it is not open."""
        for window in self._state[StoreField.WINDOWS]:
            if window.id == window_id:
                return window
        return None

    def add_window(self, config: WindowConfig) -> WindowRecord:
        """Open a new window: next id, top z-index, and sole focus."""
        window_id: int = self._state[StoreField.NEXT_WINDOW_ID]
        z_index: int = self._state[StoreField.MAX_Z_INDEX]
        record = WindowRecord(
            id=window_id,
            app_type=config.app_type,
            title=config.title,
            icon=config.icon,
            z_index=z_index,
            x=config.x,
            y=config.y,
            width=config.width,
            height=config.height,
            is_focused=True,
        )
        windows = [replace(w, is_focused=False) for w in self._state[StoreField.WINDOWS]]
        windows.append(record)
        self.set_state(
            {
                StoreField.WINDOWS: windows,
                StoreField.ACTIVE_WINDOW_ID: window_id,
                StoreField.NEXT_WINDOW_ID: window_id + 1,
                StoreField.MAX_Z_INDEX: z_index + 1,
                StoreField.WINDOWS_CREATED: self._state[StoreField.WINDOWS_CREATED] + 1,
            }
        )
        return record

    def remove_window(self, window_id: int) -> bool:
        """Close a window record.

        If the closed window was the active one, the most recently added
        remaining window becomes active and is raised to the top.

        Returns:
            False if *window_id* was not open.

        """
        windows = [w for w in self._state[StoreField.WINDOWS] if w.id != window_id]
        if len(windows) == len(self._state[StoreField.WINDOWS]):
            return False

        updates: dict[str, Any] = {StoreField.WINDOWS: windows}
        active = self._state[StoreField.ACTIVE_WINDOW_ID]
        if not any(w.id == active for w in windows):
            if windows:
                z_index: int = self._state[StoreField.MAX_Z_INDEX]
                windows[-1] = replace(windows[-1], is_focused=True, z_index=z_index)
                updates[StoreField.ACTIVE_WINDOW_ID] = windows[-1].id
                updates[StoreField.MAX_Z_INDEX] = z_index + 1
            else:
                updates[StoreField.ACTIVE_WINDOW_ID] = None
        self.set_state(updates)
        return True

    def update_window(self, window_id: int, *, persist: bool = True, **changes: Any) -> bool:
        """Replace fields of one window record.

        Args:
            window_id: The window to change.
            persist: When False, skip the storage write.
            **changes: Record fields to replace (geometry, title, icon,
                minimized / maximized flags).

        Returns:
            False if *window_id* was not open.

        Raises:
            ValueError: If a change names a field that may not be set
                directly (id, focus, z-index) or does not exist, or
                sets geometry to something other than a finite number or
                None.

        """
        forbidden = set(changes) - _UPDATABLE_WINDOW_FIELDS
        if forbidden:
            msg = f"Cannot update window field(s) directly: {', '.join(sorted(forbidden))}"
            raise ValueError(msg)
        invalid = sorted(k for k in _GEOMETRY_FIELDS & changes.keys() if not is_geometry(changes[k]))
        if invalid:
            msg = f"Window geometry must be a finite number: {', '.join(invalid)}"
            raise ValueError(msg)
        if self.find_window(window_id) is None:
            return False
        windows = [
            replace(w, **changes) if w.id == window_id else w
            for w in self._state[StoreField.WINDOWS]
        ]
        self.set_state({StoreField.WINDOWS: windows}, persist=persist)
        return True

    def focus_window(self, window_id: int) -> bool:
        """Give *window_id* sole focus and a new top z-index."""
        if self.find_window(window_id) is None:
            return False
        z_index: int = self._state[StoreField.MAX_Z_INDEX]
        windows = [
            replace(w, is_focused=True, z_index=z_index)
            if w.id == window_id
            else replace(w, is_focused=False)
            for w in self._state[StoreField.WINDOWS]
        ]
        self.set_state(
            {
                StoreField.WINDOWS: windows,
                StoreField.ACTIVE_WINDOW_ID: window_id,
                StoreField.MAX_Z_INDEX: z_index + 1,
            }
        )
        return True

    def minimize_window(self, window_id: int) -> bool:
        """Mark a window minimized."""
        return self.update_window(window_id, is_minimized=True)

    def restore_window(self, window_id: int) -> bool:
        """Un-minimize a window and focus it."""
        if not self.update_window(window_id, is_minimized=False):
            return False
        return self.focus_window(window_id)

    def toggle_maximize(self, window_id: int) -> bool:
        """Flip a window between maximized and normal."""
        window = self.find_window(window_id)
        if window is None:
            return False
        return self.update_window(window_id, is_maximized=not window.is_maximized)

    # -- Persistence ----------------------------------------------------------

    def save_to_storage(self) -> bool:
        """Write the persisted snapshot to storage.

        Returns:
            False if the write failed (the failure is logged).

        """
        try:
            text = json.dumps(build_snapshot(self._state))
            self._storage.write(self._storage_key, text)
        except (OSError, TypeError, ValueError) as e:
            self._logger.log(LogLevel.ERROR, f"Failed to save state to storage: {e}", source=_LOG_SOURCE)
            return False
        return True

    def load_from_storage(self) -> bool:
        """Hydrate the record from the stored snapshot.

        The load itself never triggers a save, so fields that are not
        part of the snapshot cannot be overwritten by the act of loading.

        Returns:
            True if a snapshot was found and applied.

        """
        try:
            text = self._storage.read(self._storage_key)
            if text is None:
                return False
            updates, problems = parse_snapshot(json.loads(text))
        except (OSError, ValueError) as e:
            self._logger.log(LogLevel.ERROR, f"Failed to load state from storage: {e}", source=_LOG_SOURCE)
            return False

        for problem in problems:
            self._logger.log(LogLevel.WARNING, problem, source=_LOG_SOURCE)
        self.set_state(updates, persist=False)
        self._logger.log(
            LogLevel.INFO,
            f"Restored state from storage ({len(updates[StoreField.WINDOWS])} windows)",
            source=_LOG_SOURCE,
        )
        return True

    def reset(self) -> None:
        """Forget the stored snapshot and return every field to its default."""
        try:
            self._storage.remove(self._storage_key)
        except (OSError, ValueError) as e:
            self._logger.log(LogLevel.ERROR, f"Failed to clear storage: {e}", source=_LOG_SOURCE)
        self.set_state(default_state(), persist=False)
