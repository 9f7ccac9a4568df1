"""Window Manager — lifecycle transitions and live-instance reconciliation.

The manager is the only component that writes window lifecycle changes
(create, close, focus, minimize, restore, maximize, move, resize) into
the store.  Each public operation:

1. delegates the record change to the store's window helpers,
2. bumps a session telemetry counter and ``last_activity_at`` with
   ``persist=False`` (telemetry must never force a storage write).

Operations on an id that is not open are no-ops returning False: the
common caller pattern is "close it if it is open".

Reconciliation runs the other way.  The manager subscribes to the
store's ``windows`` field and keeps a registry of live ``Window``
instances keyed by id.  On every notification it:

- creates instances for ids that appeared,
- destroys instances for ids that disappeared,
- calls ``update()`` on the rest with their latest record.

The process depends only on the collection it is handed, so replaying
a stale or duplicate notification is harmless.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nexus_shell.fs.nodes import now_ms
from nexus_shell.logging import LogLevel
from nexus_shell.state.fields import StoreField
from nexus_shell.windows.frames import ManualFrameScheduler
from nexus_shell.windows.window import Viewport, Window

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from nexus_shell.state.records import WindowConfig, WindowRecord
    from nexus_shell.state.store import Store, Subscription
    from nexus_shell.windows.frames import FrameScheduler

    from typing import TypeAlias

    WindowFactory: TypeAlias = Callable[[WindowRecord, WindowManager], Window]

_LOG_SOURCE = "windows"


class WindowManager:
    """Owns window lifecycle and the live instances that render them."""

    def __init__(
        self,
        store: Store,
        *,
        viewport: Viewport | None = None,
        frames: FrameScheduler | None = None,
        window_factory: WindowFactory | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Create a manager and hydrate instances for already-open windows.

        Args:
            store: The store holding the window collection.
            viewport: Desktop area handed to new instances.
            frames: Animation-frame clock handed to new instances.
            window_factory: Builds a live instance for a record.  The
                default builds a ``Window`` with *viewport* and *frames*.
            clock: Source of ``last_activity_at`` timestamps.

        """
        self._store = store
        self._viewport = viewport or Viewport()
        self._frames = frames if frames is not None else ManualFrameScheduler()
        self._factory = window_factory or self._default_factory
        self._clock = clock
        self._instances: dict[int, Window] = {}
        self._subscription: Subscription | None = None
        self.attach()

    def _default_factory(self, record: WindowRecord, manager: WindowManager) -> Window:
        return Window(record, manager, viewport=self._viewport, frames=self._frames)

    @property
    def viewport(self) -> Viewport:
        """Return the desktop area windows are placed in."""
        return self._viewport

    @property
    def frames(self) -> FrameScheduler:
        """Return the animation-frame clock shared by all instances."""
        return self._frames

    # -- Reconciliation -------------------------------------------------------

    def _on_windows_changed(self, windows: list[WindowRecord], _previous: object) -> None:
        self.sync_windows(windows)

    def sync_windows(self, windows: Iterable[WindowRecord] | None) -> None:
        """Match the live instances to *windows*."""
        records = list(windows or ())
        wanted = {record.id for record in records}

        for window_id in [i for i in self._instances if i not in wanted]:
            self._instances.pop(window_id).destroy()

        for record in records:
            instance = self._instances.get(record.id)
            if instance is None:
                self._instances[record.id] = self._factory(record, self)
            else:
                instance.update(record)

    def get_window(self, window_id: int) -> Window | None:
        """Return the live instance for *window_id*, if any."""
        return self._instances.get(window_id)

    def active_windows(self) -> list[int]:
        """Return the ids of every live instance."""
        return list(self._instances)

    # -- Lifecycle ------------------------------------------------------------

    def _touch(self, counter: StoreField | None = None) -> None:
        """Record telemetry for one operation without persisting."""
        if counter is not None:
            self._store.bump_counter(counter, persist=False)
        self._store.set_state({StoreField.LAST_ACTIVITY_AT: self._clock()}, persist=False)

    def create_window(self, config: WindowConfig) -> int:
        """Open a window and return its id."""
        record = self._store.add_window(config)
        self._touch()
        self._store.logger.log(
            LogLevel.INFO,
            f"Opened window {record.id} ({record.app_type.value})",
            source=_LOG_SOURCE,
        )
        return record.id

    def close_window(self, window_id: int) -> bool:
        """Close a window: tear down its instance and drop its record."""
        if self._store.find_window(window_id) is None:
            return False
        instance = self._instances.pop(window_id, None)
        if instance is not None:
            instance.destroy()
        self._store.remove_window(window_id)
        self._touch(StoreField.WINDOWS_CLOSED)
        self._store.logger.log(LogLevel.INFO, f"Closed window {window_id}", source=_LOG_SOURCE)
        return True

    def close_all_windows(self) -> int:
        """Close every open window and return how many were closed."""
        return sum(self.close_window(w.id) for w in self._store.windows())

    def focus_window(self, window_id: int) -> bool:
        """Bring a window to the front and give it focus."""
        if not self._store.focus_window(window_id):
            return False
        self._touch(StoreField.WINDOWS_FOCUSED)
        return True

    def minimize_window(self, window_id: int) -> bool:
        """Minimize a window."""
        if not self._store.minimize_window(window_id):
            return False
        self._touch(StoreField.WINDOWS_MINIMIZED)
        return True

    def restore_window(self, window_id: int) -> bool:
        """Un-minimize a window; restoring always focuses it too."""
        if not self._store.restore_window(window_id):
            return False
        self._touch(StoreField.WINDOWS_RESTORED)
        return True

    def toggle_maximize(self, window_id: int) -> bool:
        """Flip a window between maximized and normal."""
        if not self._store.toggle_maximize(window_id):
            return False
        self._touch(StoreField.WINDOWS_MAXIMIZED)
        return True

    def update_window_position(self, window_id: int, x: float, y: float, *, persist: bool = False) -> bool:
        """Move a window.

        Interactive drags call this once per frame with the default
        ``persist=False`` and once more with ``persist=True`` on release.
        """
        if not self._store.update_window(window_id, x=x, y=y, persist=persist):
            return False
        self._touch(StoreField.WINDOWS_MOVED)
        return True

    def update_window_size(
        self, window_id: int, width: float, height: float, *, persist: bool = False
    ) -> bool:
        """Resize a window (same persistence discipline as moves)."""
        if not self._store.update_window(window_id, width=width, height=height, persist=persist):
            return False
        self._touch(StoreField.WINDOWS_RESIZED)
        return True

    @property
    def attached(self) -> bool:
        """Return True while the manager follows the store."""
        return self._subscription is not None

    def attach(self) -> None:
        """Follow the store's window collection and rebuild live instances.

        Attaching an attached manager only re-syncs.
        """
        if self._subscription is None:
            self._subscription = self._store.subscribe(StoreField.WINDOWS, self._on_windows_changed)
        self.sync_windows(self._store.windows())

    def dispose(self) -> None:
        """Stop reconciling and destroy every live instance.

        ``attach()`` starts reconciling again.
        """
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for instance in self._instances.values():
            instance.destroy()
        self._instances.clear()
