"""Tests for snapshot building and defensive loading.

A persisted snapshot may be stale or hand-edited.  Loading must drop
what it cannot trust and restore the window invariants: unique ids,
unique z-indices, exactly one focused window on top.
"""

import json
from typing import Any

import pytest

from nexus_shell.fs.nodes import DirectoryNode, FileNode, tree_to_dict
from nexus_shell.state.defaults import BASE_Z_INDEX, default_state
from nexus_shell.state.fields import StoreField
from nexus_shell.state.persistence import (
    STORAGE_KEY,
    build_snapshot,
    normalize_windows,
    parse_snapshot,
)
from nexus_shell.state.records import AppType, WindowConfig
from nexus_shell.state.storage import MemoryStorage
from nexus_shell.state.store import Store


def _window(window_id: Any, z_index: int = BASE_Z_INDEX, **extra: Any) -> dict[str, Any]:
    return {"id": window_id, "appType": "terminal", "title": "T", "zIndex": z_index, **extra}


def _assert_window_invariants(windows: list[Any], active: int | None) -> None:
    ids = [w.id for w in windows]
    assert len(ids) == len(set(ids))
    z_indices = [w.z_index for w in windows]
    assert len(z_indices) == len(set(z_indices))
    focused = [w for w in windows if w.is_focused]
    if active is None:
        assert focused == []
    else:
        assert [w.id for w in focused] == [active]
        assert focused[0].z_index == max(z_indices)


class TestBuildSnapshot:
    """Verify which fields are persisted."""

    def test_only_persisted_fields(self) -> None:
        """Telemetry and UI flags stay out of the snapshot."""
        snapshot = build_snapshot(default_state())
        assert set(snapshot) == {
            "theme",
            "wallpaper",
            "terminalHistory",
            "fileSystem",
            "windows",
            "activeWindowId",
            "nextWindowId",
            "maxZIndex",
        }

    def test_file_tree_is_wrapped_under_root(self) -> None:
        """The tree is stored as {"/": root}."""
        snapshot = build_snapshot(default_state())
        assert snapshot["fileSystem"]["/"]["type"] == "directory"

    def test_snapshot_is_json_serializable(self) -> None:
        """The whole snapshot encodes as JSON."""
        assert json.loads(json.dumps(build_snapshot(default_state())))["theme"] == "dark"


class TestNormalizeWindows:
    """Verify window re-validation on load."""

    def test_non_list_gives_empty(self) -> None:
        """A windows value that is not a list restores nothing."""
        result = normalize_windows({"oops": 1}, 3)
        assert result.windows == []
        assert result.active_window_id is None
        assert result.next_window_id == 1
        assert result.max_z_index == BASE_Z_INDEX

    def test_drops_malformed_and_duplicate_entries(self) -> None:
        """Bad ids, unknown apps and repeated ids are dropped."""
        raw = [
            _window(1, 100),
            _window(1, 101),
            _window("x", 102),
            _window(0, 103),
            {"id": 4, "appType": "paint", "zIndex": 104},
            "garbage",
            _window(5, 105),
        ]
        result = normalize_windows(raw, 5)
        assert [w.id for w in result.windows] == [1, 5]
        assert result.dropped == 5
        _assert_window_invariants(result.windows, result.active_window_id)

    def test_counters_recomputed(self) -> None:
        """next id and max z come from the survivors."""
        result = normalize_windows([_window(3, 140), _window(7, 120)], 7)
        assert result.next_window_id == 8
        assert result.max_z_index > max(w.z_index for w in result.windows)

    def test_invalid_active_falls_back_to_last(self) -> None:
        """An active id that is not open falls back to the last window."""
        result = normalize_windows([_window(1, 100), _window(2, 101)], 99)
        assert result.active_window_id == 2
        _assert_window_invariants(result.windows, 2)

    def test_active_raised_above_others(self) -> None:
        """The focused window is moved to the top of the stack."""
        result = normalize_windows([_window(1, 100), _window(2, 150)], 1)
        _assert_window_invariants(result.windows, 1)

    def test_colliding_z_indices_reranked(self) -> None:
        """Equal z-indices are re-ranked keeping their order."""
        result = normalize_windows([_window(1, 110), _window(2, 110), _window(3, 110)], 3)
        _assert_window_invariants(result.windows, 3)

    def test_stale_focus_flags_cleared(self) -> None:
        """Only the active window keeps isFocused."""
        raw = [_window(1, 100, isFocused=True), _window(2, 101, isFocused=True)]
        result = normalize_windows(raw, 2)
        _assert_window_invariants(result.windows, 2)

    def test_non_finite_geometry_becomes_auto(self) -> None:
        """Geometry that is not a finite number is reset to None."""
        result = normalize_windows([_window(1, 100, x=float("nan"), width="wide", y=12)], 1)
        window = result.windows[0]
        assert window.x is None
        assert window.width is None
        assert window.y == 12

    def test_normalize_is_idempotent(self) -> None:
        """Normalizing already-normal windows changes nothing."""
        first = normalize_windows([_window(2, 100), _window(2, 100), _window(4, 100)], 2)
        again = normalize_windows([w.to_dict() for w in first.windows], first.active_window_id)
        assert again.windows == first.windows
        assert again.active_window_id == first.active_window_id
        assert again.next_window_id == first.next_window_id


class TestParseSnapshot:
    """Verify field-by-field validation."""

    def test_rejects_non_object(self) -> None:
        """A snapshot must be a JSON object."""
        with pytest.raises(ValueError, match="object"):
            parse_snapshot([1, 2, 3])

    def test_invalid_fields_keep_defaults(self) -> None:
        """Invalid values are reported and left out of the updates."""
        updates, problems = parse_snapshot({"theme": 42, "wallpaper": 7, "terminalHistory": "ls"})
        assert StoreField.THEME not in updates
        assert StoreField.WALLPAPER not in updates
        assert StoreField.TERMINAL_HISTORY not in updates
        assert len(problems) == 3

    def test_history_keeps_strings_only(self) -> None:
        """Non-string history entries are discarded."""
        updates, _ = parse_snapshot({"terminalHistory": ["ls", 3, None, "pwd"]})
        assert updates[StoreField.TERMINAL_HISTORY] == ["ls", "pwd"]

    def test_window_fields_always_present(self) -> None:
        """Even an empty snapshot resets the window collection."""
        updates, problems = parse_snapshot({})
        assert updates[StoreField.WINDOWS] == []
        assert updates[StoreField.ACTIVE_WINDOW_ID] is None
        assert problems == []

    def test_file_tree_merged_with_defaults(self) -> None:
        """Default files are added; user files and edits survive."""
        root = DirectoryNode(
            name="root",
            children={
                "home": DirectoryNode(
                    name="home",
                    children={"mine.txt": FileNode(name="mine.txt", content="hi")},
                ),
                "system": FileNode(name="system", content="user replaced a dir"),
            },
        )
        updates, _ = parse_snapshot({"fileSystem": tree_to_dict(root)})
        tree = updates[StoreField.FILE_SYSTEM]
        home = tree.children["home"]
        assert home.children["mine.txt"].content == "hi"
        assert "documents" in home.children
        assert isinstance(tree.children["system"], FileNode)

    def test_broken_file_tree_is_reported(self) -> None:
        """A tree without a root keeps the default tree."""
        updates, problems = parse_snapshot({"fileSystem": {"home": {}}})
        assert StoreField.FILE_SYSTEM not in updates
        assert any("file tree" in p for p in problems)


class TestLoadThroughStore:
    """Verify the store applies a hand-edited snapshot safely."""

    def test_hand_edited_snapshot(self) -> None:
        """Duplicates and bad ids are dropped with a warning."""
        snapshot = {
            "windows": [_window(1, 100), _window(1, 120), _window(-3, 130), _window(2, 100)],
            "activeWindowId": 1,
            "nextWindowId": 1,
            "maxZIndex": 0,
        }
        store = Store(storage=MemoryStorage({STORAGE_KEY: json.dumps(snapshot)}))
        assert store.load_from_storage()
        windows = store.windows()
        assert [w.id for w in windows] == [1, 2]
        _assert_window_invariants(windows, 1)
        assert store.get(StoreField.NEXT_WINDOW_ID) == 3
        assert store.get(StoreField.MAX_Z_INDEX) > max(w.z_index for w in windows)
        warnings = [e.message for e in store.logger.filter(source="storage")]
        assert any("dropped 2" in m for m in warnings)

    def test_new_window_after_load_gets_fresh_id(self) -> None:
        """Counters recomputed on load never reuse a surviving id."""
        snapshot = {"windows": [_window(9, 100)], "activeWindowId": 9, "nextWindowId": 2}
        store = Store(storage=MemoryStorage({STORAGE_KEY: json.dumps(snapshot)}))
        store.load_from_storage()
        record = store.add_window(WindowConfig(app_type=AppType.SETTINGS))
        assert record.id == 10
