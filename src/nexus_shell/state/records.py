"""Window records — the serializable description of one open window.

A ``WindowRecord`` is a value: the store never mutates one in place.
Every lifecycle transition (focus, minimize, move, ...) builds a new
record with ``dataclasses.replace`` and a new ``windows`` list, so a
subscriber can compare the previous and current collections safely.

Geometry fields are ``None`` until the window is first placed; ``None``
means "auto-centre in the viewport".
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class AppType(StrEnum):
    """The applications a window can host."""

    TERMINAL = "terminal"
    FILE_EXPLORER = "file-explorer"
    SYSTEM_MONITOR = "system-monitor"
    SETTINGS = "settings"


@dataclass(frozen=True)
class WindowConfig:
    """Parameters for opening a new window."""

    app_type: AppType
    title: str = "Untitled"
    icon: str = ""
    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None


def _geometry(value: Any) -> float | None:
    """Return *value* if it is a finite number, else None (auto)."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return value if math.isfinite(value) else None


def is_geometry(value: Any) -> bool:
    """Return True if *value* may be stored as a window coordinate or size."""
    return value is None or _geometry(value) is not None


@dataclass(frozen=True)
class WindowRecord:
    """State and geometry of one open window."""

    id: int
    app_type: AppType
    title: str
    icon: str
    z_index: int
    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None
    is_minimized: bool = False
    is_maximized: bool = False
    is_focused: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase layout used by the persisted snapshot."""
        return {
            "id": self.id,
            "appType": self.app_type.value,
            "title": self.title,
            "icon": self.icon,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "zIndex": self.z_index,
            "isMinimized": self.is_minimized,
            "isMaximized": self.is_maximized,
            "isFocused": self.is_focused,
        }

    @classmethod
    def from_dict(cls, data: Any, *, default_z_index: int) -> WindowRecord:
        """Rebuild a record from ``to_dict()`` output.

        Missing or non-finite geometry becomes ``None``; a missing
        z-index becomes *default_z_index*.

        Raises:
            ValueError: If the id is not a positive integer or the app
                type is unknown.

        """
        if not isinstance(data, dict):
            msg = f"Window entry must be an object, got {type(data).__name__}"
            raise ValueError(msg)

        window_id = data.get("id")
        if isinstance(window_id, float) and window_id.is_integer():
            window_id = int(window_id)
        if isinstance(window_id, bool) or not isinstance(window_id, int) or window_id < 1:
            msg = f"Invalid window id: {window_id!r}"
            raise ValueError(msg)

        app_type = AppType(data.get("appType"))

        z_index = data.get("zIndex")
        if isinstance(z_index, bool) or not isinstance(z_index, int | float) or not math.isfinite(z_index):
            z_index = default_z_index

        title = data.get("title")
        icon = data.get("icon")
        return cls(
            id=window_id,
            app_type=app_type,
            title=title if isinstance(title, str) else "Untitled",
            icon=icon if isinstance(icon, str) else "",
            z_index=int(z_index),
            x=_geometry(data.get("x")),
            y=_geometry(data.get("y")),
            width=_geometry(data.get("width")),
            height=_geometry(data.get("height")),
            is_minimized=bool(data.get("isMinimized")),
            is_maximized=bool(data.get("isMaximized")),
            is_focused=bool(data.get("isFocused")),
        )
