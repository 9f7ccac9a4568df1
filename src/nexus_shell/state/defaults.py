"""Default values for every store field.

Every field has a value from the moment the store is constructed, so
``get()`` on a known field never needs a fallback and a corrupt
persisted value can always be replaced by its default.
"""

from __future__ import annotations

from typing import Any

from nexus_shell.fs.nodes import default_file_tree, now_ms
from nexus_shell.state.fields import StoreField

FIRST_WINDOW_ID = 1
BASE_Z_INDEX = 100
HOME_DIRECTORY = "/home"
DEFAULT_THEME = "dark"
TERMINAL_HISTORY_LIMIT = 100


def default_wallpaper() -> dict[str, str]:
    """Return the wallpaper a fresh desktop starts with."""
    return {"type": "image", "src": "assets/wallpapers/1.jpg", "id": "1.jpg"}


def default_state() -> dict[str, Any]:
    """Build a fresh state record with every field at its default."""
    now = now_ms()
    return {
        StoreField.WINDOWS: [],
        StoreField.ACTIVE_WINDOW_ID: None,
        StoreField.NEXT_WINDOW_ID: FIRST_WINDOW_ID,
        StoreField.MAX_Z_INDEX: BASE_Z_INDEX,
        StoreField.CURRENT_DIRECTORY: HOME_DIRECTORY,
        StoreField.FILE_SYSTEM: default_file_tree(),
        StoreField.THEME: DEFAULT_THEME,
        StoreField.WALLPAPER: default_wallpaper(),
        StoreField.SESSION_START: now,
        StoreField.COMMANDS_EXECUTED: 0,
        StoreField.WINDOWS_CREATED: 0,
        StoreField.WINDOWS_CLOSED: 0,
        StoreField.WINDOWS_FOCUSED: 0,
        StoreField.WINDOWS_MINIMIZED: 0,
        StoreField.WINDOWS_RESTORED: 0,
        StoreField.WINDOWS_MAXIMIZED: 0,
        StoreField.WINDOWS_MOVED: 0,
        StoreField.WINDOWS_RESIZED: 0,
        StoreField.LAST_ACTIVITY_AT: now,
        StoreField.TERMINAL_HISTORY: [],
        StoreField.START_MENU_OPEN: False,
        StoreField.CONTEXT_MENU_OPEN: False,
    }
