"""State subsystem — the reactive store, its records, and persistence.

Re-exports public symbols so callers can write::

    from nexus_shell.state import Store, StoreField
"""

from nexus_shell.state.fields import WILDCARD, StoreField
from nexus_shell.state.records import AppType, WindowConfig, WindowRecord
from nexus_shell.state.defaults import default_state
from nexus_shell.state.storage import FileStorage, MemoryStorage, Storage
from nexus_shell.state.persistence import STORAGE_KEY, NormalizedWindows, normalize_windows
from nexus_shell.state.store import Store, Subscription
from nexus_shell.state.autosave import DEFAULT_AUTOSAVE_INTERVAL, AutosaveTimer

__all__ = [
    "DEFAULT_AUTOSAVE_INTERVAL",
    "STORAGE_KEY",
    "WILDCARD",
    "AppType",
    "AutosaveTimer",
    "FileStorage",
    "MemoryStorage",
    "NormalizedWindows",
    "Storage",
    "Store",
    "StoreField",
    "Subscription",
    "WindowConfig",
    "WindowRecord",
    "default_state",
    "normalize_windows",
]
