"""Desktop configuration.

A ``DesktopConfig`` collects the knobs a host sets once per session:
where the snapshot is stored, how often autosave fires, and the size of
the desktop area.  Configuration can be built in code or loaded from a
JSON document; keys missing from the document keep their defaults::

    {
      "storage_dir": "~/.nexus-shell",
      "autosave_interval": 30,
      "viewport": {"width": 1920, "height": 1080, "taskbar_height": 50}
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nexus_shell.state.autosave import DEFAULT_AUTOSAVE_INTERVAL
from nexus_shell.state.defaults import TERMINAL_HISTORY_LIMIT
from nexus_shell.state.persistence import STORAGE_KEY
from nexus_shell.windows.window import MIN_HEIGHT, MIN_WIDTH, Viewport


class ConfigError(ValueError):
    """Raise when a configuration document cannot be read or is invalid."""


@dataclass(frozen=True)
class DesktopConfig:
    """Settings for one desktop session.

    Attributes:
        storage_dir: Directory for the persisted snapshot.  None keeps
            state in memory only.
        storage_key: Key (file stem) the snapshot is stored under.
        autosave_interval: Ticks between forced snapshot writes.
        viewport: Desktop area, including the reserved taskbar band.
        min_window_width: Smallest width a resize may produce.
        min_window_height: Smallest height a resize may produce.
        history_limit: Terminal commands kept in history.

    """

    storage_dir: Path | None = None
    storage_key: str = STORAGE_KEY
    autosave_interval: int = DEFAULT_AUTOSAVE_INTERVAL
    viewport: Viewport = field(default_factory=Viewport)
    min_window_width: float = MIN_WIDTH
    min_window_height: float = MIN_HEIGHT
    history_limit: int = TERMINAL_HISTORY_LIMIT

    def __post_init__(self) -> None:
        """Reject values no session could run with."""
        if self.autosave_interval <= 0:
            msg = f"autosave_interval must be positive, got {self.autosave_interval}"
            raise ConfigError(msg)
        if self.history_limit <= 0:
            msg = f"history_limit must be positive, got {self.history_limit}"
            raise ConfigError(msg)
        if self.viewport.width <= 0 or self.viewport.usable_height <= 0:
            msg = "viewport must have a positive area above the taskbar"
            raise ConfigError(msg)


def _viewport_from(data: Any) -> Viewport:
    if data is None:
        return Viewport()
    if not isinstance(data, dict):
        msg = "viewport must be an object"
        raise ConfigError(msg)
    default = Viewport()
    return Viewport(
        width=data.get("width", default.width),
        height=data.get("height", default.height),
        taskbar_height=data.get("taskbar_height", default.taskbar_height),
    )


def config_from_dict(data: dict[str, Any]) -> DesktopConfig:
    """Build a config from a decoded JSON object."""
    default = DesktopConfig()
    storage_dir = data.get("storage_dir")
    return DesktopConfig(
        storage_dir=Path(storage_dir).expanduser() if storage_dir else None,
        storage_key=data.get("storage_key", default.storage_key),
        autosave_interval=data.get("autosave_interval", default.autosave_interval),
        viewport=_viewport_from(data.get("viewport")),
        min_window_width=data.get("min_window_width", default.min_window_width),
        min_window_height=data.get("min_window_height", default.min_window_height),
        history_limit=data.get("history_limit", default.history_limit),
    )


def load_config(path: Path) -> DesktopConfig:
    """Load a config from a JSON file.

    Raises:
        ConfigError: If the file cannot be read, is not JSON, or holds
            invalid values.

    """
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot load desktop config: {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = "Desktop config must be a JSON object"
        raise ConfigError(msg)
    return config_from_dict(data)
