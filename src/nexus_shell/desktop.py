"""Desktop — the composition root for one shell session.

A ``Desktop`` wires the subsystems together in dependency order:

    storage → logger → store → filesystem → frames → window manager → autosave

Building a desktop does not touch storage.  ``boot()`` hydrates the store
from the persisted snapshot (falling back to defaults when there is none
or it is unreadable) and records each step in a boot log, much as a
kernel prints its start-up messages.  ``shutdown()`` writes one final
snapshot and tears down the live window instances.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from nexus_shell.config import DesktopConfig
from nexus_shell.fs.vfs import VirtualFileSystem
from nexus_shell.logging import Logger, LogLevel
from nexus_shell.state.autosave import AutosaveTimer
from nexus_shell.state.fields import StoreField
from nexus_shell.state.storage import FileStorage, MemoryStorage
from nexus_shell.state.store import Store
from nexus_shell.windows.apps import launch_app, switch_window
from nexus_shell.windows.frames import ManualFrameScheduler
from nexus_shell.windows.manager import WindowManager
from nexus_shell.windows.window import Window

if TYPE_CHECKING:
    from nexus_shell.state.records import WindowRecord
    from nexus_shell.state.storage import Storage

_LOG_SOURCE = "desktop"


class DesktopState(StrEnum):
    """Lifecycle phases of a desktop session."""

    SHUTDOWN = "shutdown"
    RUNNING = "running"


class Desktop:
    """One store plus the filesystem, window manager and timers around it."""

    def __init__(self, config: DesktopConfig | None = None, *, storage: Storage | None = None) -> None:
        """Build every subsystem for *config*.

        Args:
            config: Session settings (defaults apply when omitted).
            storage: Explicit storage backend.  When omitted, a
                ``FileStorage`` is used if the config names a directory,
                otherwise a ``MemoryStorage``.

        """
        self._config = config or DesktopConfig()
        self._state = DesktopState.SHUTDOWN
        self._boot_log: list[str] = []

        if storage is None:
            directory = self._config.storage_dir
            storage = FileStorage(directory) if directory is not None else MemoryStorage()
        self._logger = Logger()
        self._store = Store(
            storage=storage,
            logger=self._logger,
            storage_key=self._config.storage_key,
            history_limit=self._config.history_limit,
        )
        self._vfs = VirtualFileSystem(self._store)
        self._frames = ManualFrameScheduler()
        self._manager = WindowManager(
            self._store,
            viewport=self._config.viewport,
            frames=self._frames,
            window_factory=self._build_window,
        )
        self._autosave = AutosaveTimer(self._store, interval=self._config.autosave_interval)

    def _build_window(self, record: WindowRecord, manager: WindowManager) -> Window:
        return Window(
            record,
            manager,
            viewport=self._config.viewport,
            frames=self._frames,
            min_width=self._config.min_window_width,
            min_height=self._config.min_window_height,
        )

    # -- Properties -----------------------------------------------------------

    @property
    def config(self) -> DesktopConfig:
        """Return the session settings."""
        return self._config

    @property
    def state(self) -> DesktopState:
        """Return the lifecycle phase."""
        return self._state

    @property
    def store(self) -> Store:
        """Return the state store."""
        return self._store

    @property
    def vfs(self) -> VirtualFileSystem:
        """Return the virtual filesystem."""
        return self._vfs

    @property
    def manager(self) -> WindowManager:
        """Return the window manager."""
        return self._manager

    @property
    def frames(self) -> ManualFrameScheduler:
        """Return the animation-frame clock."""
        return self._frames

    @property
    def autosave(self) -> AutosaveTimer:
        """Return the autosave timer."""
        return self._autosave

    @property
    def logger(self) -> Logger:
        """Return the session logger."""
        return self._logger

    def dmesg(self) -> list[str]:
        """Return a copy of the boot log."""
        return list(self._boot_log)

    # -- Lifecycle ------------------------------------------------------------

    def boot(self) -> None:
        """Hydrate state from storage and start the session.

        Raises:
            RuntimeError: If the desktop is already running.

        """
        if self._state is not DesktopState.SHUTDOWN:
            msg = f"Cannot boot: desktop is {self._state}, expected shutdown"
            raise RuntimeError(msg)

        self._boot_log.append("[OK] Logger")
        self._manager.attach()
        if self._store.load_from_storage():
            count = len(self._store.windows())
            self._boot_log.append(f"[OK] State restored ({count} windows)")
        else:
            self._boot_log.append("[OK] State initialised with defaults")
        self._boot_log.append(f"[OK] File system (cwd {self._vfs.pwd()})")
        self._boot_log.append(f"[OK] Window manager ({len(self._manager.active_windows())} live)")
        self._autosave.start()
        self._boot_log.append(f"[OK] Autosave (every {self._autosave.interval} ticks)")

        self._state = DesktopState.RUNNING
        self._logger.log(LogLevel.INFO, "Desktop booted", source=_LOG_SOURCE)

    def shutdown(self) -> bool:
        """Save the snapshot one last time and stop the session.

        Returns:
            True if the final save succeeded.

        Raises:
            RuntimeError: If the desktop is not running.

        """
        if self._state is not DesktopState.RUNNING:
            msg = f"Cannot shut down: desktop is {self._state}, expected running"
            raise RuntimeError(msg)

        saved = self._store.save_to_storage()
        self._autosave.stop()
        self._manager.dispose()
        self._state = DesktopState.SHUTDOWN
        self._boot_log.clear()
        self._logger.log(LogLevel.INFO, "Desktop shut down", source=_LOG_SOURCE)
        return saved

    # -- Session commands -----------------------------------------------------

    def launch_app(self, app_name: str) -> int | None:
        """Open an app, or bring its window forward."""
        return launch_app(self._manager, self._store, app_name)

    def switch_window(self) -> int | None:
        """Cycle focus to the next window (Alt+Tab)."""
        return switch_window(self._manager, self._store)

    def run_command(self, command: str) -> None:
        """Record a terminal command in the history."""
        self._store.add_to_terminal_history(command)

    def tick(self) -> bool:
        """Advance session time by one tick (one second).

        Runs any pending animation frame, then advances autosave.

        Returns:
            True if autosave fired this tick.

        """
        self._frames.run_frame()
        return self._autosave.tick()

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-ready summary of the session."""
        store = self._store
        return {
            "state": str(self._state),
            "activeWindowId": store.get(StoreField.ACTIVE_WINDOW_ID),
            "windows": [w.to_dict() for w in store.windows()],
            "currentDirectory": self._vfs.pwd(),
            "theme": store.get(StoreField.THEME),
            "commandsExecuted": store.get(StoreField.COMMANDS_EXECUTED),
            "terminalHistory": list(store.get(StoreField.TERMINAL_HISTORY)),
        }
