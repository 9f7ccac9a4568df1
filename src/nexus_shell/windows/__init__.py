"""Window subsystem — lifecycle manager, live instances, and the app catalog.

Re-exports public symbols so callers can write::

    from nexus_shell.windows import WindowManager, Window
"""

from nexus_shell.windows.frames import FrameScheduler, ManualFrameScheduler, ThrottledCommit
from nexus_shell.windows.window import (
    Bounds,
    InteractionState,
    ResizeDirection,
    Viewport,
    Window,
    WindowControl,
    initial_bounds,
)
from nexus_shell.windows.manager import WindowManager
from nexus_shell.windows.apps import APP_CATALOG, launch_app, switch_window

__all__ = [
    "APP_CATALOG",
    "Bounds",
    "FrameScheduler",
    "InteractionState",
    "ManualFrameScheduler",
    "ResizeDirection",
    "ThrottledCommit",
    "Viewport",
    "Window",
    "WindowControl",
    "WindowManager",
    "initial_bounds",
    "launch_app",
    "switch_window",
]
