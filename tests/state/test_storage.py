"""Tests for the storage backends."""

from pathlib import Path

import pytest

from nexus_shell.state.records import AppType, WindowConfig
from nexus_shell.state.storage import FileStorage, MemoryStorage
from nexus_shell.state.store import Store


class TestMemoryStorage:
    """Verify the dict-backed backend."""

    def test_read_missing_is_none(self) -> None:
        """Absent keys read as None."""
        assert MemoryStorage().read("k") is None

    def test_write_read_remove(self) -> None:
        """Values can be written, read back and removed."""
        storage = MemoryStorage()
        storage.write("k", "v")
        assert storage.read("k") == "v"
        storage.remove("k")
        assert storage.read("k") is None

    def test_initial_values_are_copied(self) -> None:
        """The initial dict is not shared with the backend."""
        initial = {"k": "v"}
        storage = MemoryStorage(initial)
        initial["k"] = "changed"
        assert storage.read("k") == "v"

    def test_usage_counts_characters(self) -> None:
        """usage() sums key and value lengths."""
        storage = MemoryStorage({"ab": "cde"})
        assert storage.usage() == 5
        assert storage.keys() == ["ab"]


class TestFileStorage:
    """Verify the directory-backed backend."""

    def test_directory_created_on_write(self, tmp_path: Path) -> None:
        """The directory appears with the first write."""
        directory = tmp_path / "state"
        storage = FileStorage(directory)
        storage.write("snap", "{}")
        assert (directory / "snap.json").read_text(encoding="utf-8") == "{}"

    def test_read_missing_is_none(self, tmp_path: Path) -> None:
        """A key with no file reads as None."""
        assert FileStorage(tmp_path).read("snap") is None

    def test_remove_missing_is_harmless(self, tmp_path: Path) -> None:
        """Removing an absent key does not raise."""
        FileStorage(tmp_path).remove("snap")

    def test_rejects_path_like_keys(self, tmp_path: Path) -> None:
        """Keys may not escape the directory."""
        with pytest.raises(ValueError, match="Invalid storage key"):
            FileStorage(tmp_path).write("../evil", "x")

    def test_store_round_trip_on_disk(self, tmp_path: Path) -> None:
        """A store saved to disk is restored by a fresh store."""
        store = Store(storage=FileStorage(tmp_path))
        store.add_window(WindowConfig(app_type=AppType.FILE_EXPLORER, title="Files"))

        restored = Store(storage=FileStorage(tmp_path))
        assert restored.load_from_storage()
        assert [w.title for w in restored.windows()] == ["Files"]

    def test_unwritable_directory_is_logged(self, tmp_path: Path) -> None:
        """A write failure leaves the store usable and logs an error."""
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        store = Store(storage=FileStorage(blocker / "state"))
        store.add_window(WindowConfig(app_type=AppType.TERMINAL))
        assert len(store.windows()) == 1
        assert store.logger.filter(source="storage")
