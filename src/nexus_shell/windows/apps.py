"""Application catalog and desktop-level window commands.

Each application the desktop can host has a default ``WindowConfig``
(title, icon, initial size).  Launching an app that already has a
window does not open a second one: the existing window is restored if
minimized, or focused otherwise.

``switch_window`` implements Alt+Tab: cycle through the visible windows
in stacking order, falling back to every window when all are minimized.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nexus_shell.logging import LogLevel
from nexus_shell.state.fields import StoreField
from nexus_shell.state.records import AppType, WindowConfig

if TYPE_CHECKING:
    from nexus_shell.state.store import Store
    from nexus_shell.windows.manager import WindowManager

APP_CATALOG: dict[AppType, WindowConfig] = {
    AppType.TERMINAL: WindowConfig(
        app_type=AppType.TERMINAL,
        title="Nexus Terminal",
        icon="assets/icons/terminal.svg",
        width=600,
        height=400,
    ),
    AppType.FILE_EXPLORER: WindowConfig(
        app_type=AppType.FILE_EXPLORER,
        title="File Explorer",
        icon="assets/icons/folder.svg",
        width=700,
        height=500,
    ),
    AppType.SYSTEM_MONITOR: WindowConfig(
        app_type=AppType.SYSTEM_MONITOR,
        title="System Monitor",
        icon="assets/icons/activity.svg",
        width=500,
        height=400,
    ),
    AppType.SETTINGS: WindowConfig(
        app_type=AppType.SETTINGS,
        title="Settings",
        icon="assets/icons/settings.svg",
        width=600,
        height=500,
    ),
}


def launch_app(manager: WindowManager, store: Store, app_name: str) -> int | None:
    """Open *app_name*, or bring its existing window forward.

    Returns:
        The id of the app's window, or None if the app is unknown.

    """
    try:
        config = APP_CATALOG[AppType(app_name)]
    except ValueError:
        store.logger.log(LogLevel.WARNING, f"Unknown app: {app_name}", source="apps")
        return None

    for window in store.windows():
        if window.app_type is config.app_type:
            if window.is_minimized:
                manager.restore_window(window.id)
            else:
                manager.focus_window(window.id)
            return window.id

    return manager.create_window(config)


def switch_window(manager: WindowManager, store: Store) -> int | None:
    """Focus the next window in stacking order (Alt+Tab).

    Returns:
        The id of the newly focused window, or None if nothing is open.

    """
    windows = store.windows()
    if not windows:
        return None

    visible = [w for w in windows if not w.is_minimized]
    ordered = sorted(visible or windows, key=lambda w: w.z_index)
    active_id = store.get(StoreField.ACTIVE_WINDOW_ID)
    ids = [w.id for w in ordered]
    index = (ids.index(active_id) + 1) % len(ordered) if active_id in ids else len(ordered) - 1
    target = ordered[index]

    if target.is_minimized:
        manager.restore_window(target.id)
    else:
        manager.focus_window(target.id)
    return target.id
