"""Persisted snapshot — what survives a page reload.

Only a subset of the store is written to durable storage: appearance,
terminal history, the file tree, and the window collection with its
allocation counters.  Telemetry counters and transient UI flags are
session-only.

The snapshot is a single JSON object with camelCase keys::

    {
      "theme": "dark",
      "wallpaper": {...},
      "terminalHistory": ["ls", ...],
      "fileSystem": {"/": {...}},
      "windows": [{"id": 1, "appType": "terminal", ...}],
      "activeWindowId": 1,
      "nextWindowId": 2,
      "maxZIndex": 101
    }

Loading is defensive.  Anything in a snapshot may be stale, hand-edited,
or written by an older version, so each field is validated on its own:

- **Windows** are re-validated: malformed entries are dropped, duplicate
  ids keep their first occurrence, z-indices are made unique, exactly one
  window is focused, and the id / z-index counters are recomputed from
  the survivors.
- **The file tree** is deep-merged with a freshly generated default tree,
  so default files added in a newer version appear without touching the
  user's own files.
- **Everything else** that fails validation keeps its default.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from nexus_shell.fs.nodes import default_file_tree, merge_defaults, tree_from_dict, tree_to_dict
from nexus_shell.state.defaults import BASE_Z_INDEX, FIRST_WINDOW_ID, TERMINAL_HISTORY_LIMIT
from nexus_shell.state.fields import StoreField
from nexus_shell.state.records import WindowRecord

STORAGE_KEY = "nexusShellState"


@dataclass(frozen=True)
class NormalizedWindows:
    """A window collection that satisfies the store's invariants."""

    windows: list[WindowRecord] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    active_window_id: int | None = None
    next_window_id: int = FIRST_WINDOW_ID
    max_z_index: int = BASE_Z_INDEX
    dropped: int = 0


def build_snapshot(state: dict[str, Any]) -> dict[str, Any]:
    """Extract the persisted subset of *state* as a JSON-ready dict."""
    return {
        "theme": state[StoreField.THEME],
        "wallpaper": state[StoreField.WALLPAPER],
        "terminalHistory": list(state[StoreField.TERMINAL_HISTORY]),
        "fileSystem": tree_to_dict(state[StoreField.FILE_SYSTEM]),
        "windows": [w.to_dict() for w in state[StoreField.WINDOWS]],
        "activeWindowId": state[StoreField.ACTIVE_WINDOW_ID],
        "nextWindowId": state[StoreField.NEXT_WINDOW_ID],
        "maxZIndex": state[StoreField.MAX_Z_INDEX],
    }


def _unique_z_indices(windows: list[WindowRecord]) -> list[WindowRecord]:
    """Re-rank z-indices if any collide, preserving stacking order."""
    if len({w.z_index for w in windows}) == len(windows):
        return windows
    ranked = sorted(range(len(windows)), key=lambda i: (windows[i].z_index, i))
    result = list(windows)
    for rank, index in enumerate(ranked):
        result[index] = replace(windows[index], z_index=BASE_Z_INDEX + rank)
    return result


def normalize_windows(raw_windows: Any, active_window_id: Any) -> NormalizedWindows:
    """Re-validate a persisted window collection.

    Args:
        raw_windows: The ``windows`` value from a snapshot (any type).
        active_window_id: The ``activeWindowId`` value from a snapshot.

    Returns:
        The surviving windows with focus and counters recomputed.

    """
    if not isinstance(raw_windows, list):
        return NormalizedWindows()

    seen: set[int] = set()
    windows: list[WindowRecord] = []
    dropped = 0
    for entry in raw_windows:
        try:
            record = WindowRecord.from_dict(entry, default_z_index=BASE_Z_INDEX)
        except ValueError:
            dropped += 1
            continue
        if record.id in seen:
            dropped += 1
            continue
        seen.add(record.id)
        windows.append(record)

    windows = _unique_z_indices(windows)

    if isinstance(active_window_id, int) and not isinstance(active_window_id, bool) and active_window_id in seen:
        active: int | None = active_window_id
    else:
        active = windows[-1].id if windows else None

    top_z = max((w.z_index for w in windows), default=BASE_Z_INDEX - 1)
    focused: list[WindowRecord] = []
    for w in windows:
        if w.id != active:
            focused.append(replace(w, is_focused=False))
            continue
        # The focused window must sit strictly on top.
        z_index = w.z_index
        if any(other.z_index >= z_index for other in windows if other.id != w.id):
            top_z += 1
            z_index = top_z
        focused.append(replace(w, z_index=z_index, is_focused=True))

    max_id = max((w.id for w in focused), default=0)
    return NormalizedWindows(
        windows=focused,
        active_window_id=active,
        next_window_id=max(FIRST_WINDOW_ID, max_id + 1),
        max_z_index=max(BASE_Z_INDEX, top_z + 1),
        dropped=dropped,
    )


def parse_snapshot(data: Any) -> tuple[dict[str, Any], list[str]]:
    """Turn a decoded snapshot into store updates.

    Returns:
        A ``(updates, problems)`` pair.  ``updates`` maps store fields to
        validated values; fields that failed validation are left out so
        they keep their defaults, and each failure is described in
        ``problems``.

    Raises:
        ValueError: If *data* is not a JSON object at all.

    """
    if not isinstance(data, dict):
        msg = f"Snapshot must be an object, got {type(data).__name__}"
        raise ValueError(msg)

    updates: dict[str, Any] = {}
    problems: list[str] = []

    theme = data.get("theme")
    if isinstance(theme, str) and theme:
        updates[StoreField.THEME] = theme
    elif theme is not None:
        problems.append(f"ignored invalid theme {theme!r}")

    wallpaper = data.get("wallpaper")
    if isinstance(wallpaper, dict | str):
        updates[StoreField.WALLPAPER] = wallpaper
    elif wallpaper is not None:
        problems.append("ignored invalid wallpaper")

    history = data.get("terminalHistory")
    if isinstance(history, list):
        commands = [c for c in history if isinstance(c, str)]
        updates[StoreField.TERMINAL_HISTORY] = commands[-TERMINAL_HISTORY_LIMIT:]
    elif history is not None:
        problems.append("ignored invalid terminal history")

    if "fileSystem" in data:
        try:
            tree = tree_from_dict(data["fileSystem"])
        except ValueError as e:
            problems.append(f"ignored invalid file tree: {e}")
        else:
            updates[StoreField.FILE_SYSTEM] = merge_defaults(tree, default_file_tree())

    normalized = normalize_windows(data.get("windows"), data.get("activeWindowId"))
    if normalized.dropped:
        problems.append(f"dropped {normalized.dropped} invalid window record(s)")
    updates[StoreField.WINDOWS] = normalized.windows
    updates[StoreField.ACTIVE_WINDOW_ID] = normalized.active_window_id
    updates[StoreField.NEXT_WINDOW_ID] = normalized.next_window_id
    updates[StoreField.MAX_Z_INDEX] = normalized.max_z_index

    return updates, problems
