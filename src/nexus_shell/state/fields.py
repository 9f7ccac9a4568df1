"""Names of the slots in the desktop's central state record."""

from enum import StrEnum

WILDCARD = "*"
"""Subscription key that matches every mutation."""


class StoreField(StrEnum):
    """Every named slot the state store holds.

    Members are plain strings, so ``store.get("theme")`` and
    ``store.get(StoreField.THEME)`` are equivalent.
    """

    # Window collection and its allocation counters
    WINDOWS = "windows"
    ACTIVE_WINDOW_ID = "active_window_id"
    NEXT_WINDOW_ID = "next_window_id"
    MAX_Z_INDEX = "max_z_index"

    # Virtual filesystem
    CURRENT_DIRECTORY = "current_directory"
    FILE_SYSTEM = "file_system"

    # Appearance
    THEME = "theme"
    WALLPAPER = "wallpaper"

    # Session telemetry (never persisted)
    SESSION_START = "session_start"
    COMMANDS_EXECUTED = "commands_executed"
    WINDOWS_CREATED = "windows_created"
    WINDOWS_CLOSED = "windows_closed"
    WINDOWS_FOCUSED = "windows_focused"
    WINDOWS_MINIMIZED = "windows_minimized"
    WINDOWS_RESTORED = "windows_restored"
    WINDOWS_MAXIMIZED = "windows_maximized"
    WINDOWS_MOVED = "windows_moved"
    WINDOWS_RESIZED = "windows_resized"
    LAST_ACTIVITY_AT = "last_activity_at"

    # Terminal
    TERMINAL_HISTORY = "terminal_history"

    # Transient UI flags
    START_MENU_OPEN = "start_menu_open"
    CONTEXT_MENU_OPEN = "context_menu_open"
