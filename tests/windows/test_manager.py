"""Tests for the window manager: lifecycle, telemetry, reconciliation."""

import random
from typing import Any

import pytest

from nexus_shell.logging import LogLevel
from nexus_shell.state.fields import StoreField
from nexus_shell.state.records import AppType, WindowConfig
from nexus_shell.state.storage import MemoryStorage
from nexus_shell.state.store import Store
from nexus_shell.windows.manager import WindowManager


class _CountingStorage(MemoryStorage):
    """Memory storage that counts writes."""

    def __init__(self) -> None:
        super().__init__()
        self.writes = 0

    def write(self, key: str, value: str) -> None:
        self.writes += 1
        super().write(key, value)


def _config(app_type: AppType = AppType.TERMINAL) -> WindowConfig:
    return WindowConfig(app_type=app_type, title=str(app_type))


def _assert_single_focus(store: Store) -> None:
    windows = store.windows()
    focused = [w for w in windows if w.is_focused]
    if not windows:
        assert store.get(StoreField.ACTIVE_WINDOW_ID) is None
        return
    assert len(focused) == 1
    assert focused[0].id == store.get(StoreField.ACTIVE_WINDOW_ID)
    assert focused[0].z_index == max(w.z_index for w in windows)


class TestCreateAndClose:
    """Verify opening and closing windows."""

    def test_create_returns_id_and_instance(self) -> None:
        """A created window has a record and a live instance."""
        store = Store()
        manager = WindowManager(store)
        window_id = manager.create_window(_config())
        assert window_id == 1
        assert manager.get_window(window_id) is not None
        assert manager.active_windows() == [1]

    def test_create_logs(self) -> None:
        """Opening a window is logged by the windows source."""
        store = Store()
        WindowManager(store).create_window(_config())
        entries = store.logger.filter(source="windows")
        assert entries[0].level is LogLevel.INFO
        assert "Opened window 1" in entries[0].message

    def test_three_windows_close_middle(self) -> None:
        """Closing a background window keeps ids and focus."""
        store = Store()
        manager = WindowManager(store)
        first, second, third = (manager.create_window(_config()) for _ in range(3))
        manager.focus_window(first)
        assert manager.close_window(second)
        assert [w.id for w in store.windows()] == [first, third]
        assert store.get(StoreField.ACTIVE_WINDOW_ID) == first
        record = store.find_window(first)
        assert record is not None
        assert record.is_focused
        _assert_single_focus(store)

    def test_close_unknown_is_noop(self) -> None:
        """Closing an id that is not open returns False."""
        store = Store()
        manager = WindowManager(store)
        assert manager.close_window(7) is False
        assert store.get(StoreField.WINDOWS_CLOSED) == 0

    def test_close_counts_and_destroys(self) -> None:
        """Closing bumps the counter and tears down the instance."""
        store = Store()
        manager = WindowManager(store)
        window_id = manager.create_window(_config())
        instance = manager.get_window(window_id)
        manager.close_window(window_id)
        assert instance is not None
        assert instance.destroyed
        assert store.get(StoreField.WINDOWS_CLOSED) == 1

    def test_close_all(self) -> None:
        """close_all_windows closes everything and reports the count."""
        store = Store()
        manager = WindowManager(store)
        for _ in range(4):
            manager.create_window(_config())
        assert manager.close_all_windows() == 4
        assert store.windows() == []
        assert manager.active_windows() == []


class TestTelemetry:
    """Verify session counters."""

    def test_lifecycle_counters(self) -> None:
        """Each operation bumps its own counter."""
        store = Store()
        manager = WindowManager(store)
        window_id = manager.create_window(_config())
        manager.focus_window(window_id)
        manager.minimize_window(window_id)
        manager.restore_window(window_id)
        manager.toggle_maximize(window_id)
        assert store.get(StoreField.WINDOWS_CREATED) == 1
        assert store.get(StoreField.WINDOWS_FOCUSED) == 1
        assert store.get(StoreField.WINDOWS_MINIMIZED) == 1
        assert store.get(StoreField.WINDOWS_RESTORED) == 1
        assert store.get(StoreField.WINDOWS_MAXIMIZED) == 1

    def test_unpersisted_move_never_writes(self) -> None:
        """Moves with persist=False and their telemetry skip storage."""
        storage = _CountingStorage()
        store = Store(storage=storage)
        manager = WindowManager(store)
        window_id = manager.create_window(_config())
        storage.writes = 0
        assert manager.update_window_position(window_id, 10, 20)
        assert manager.update_window_size(window_id, 400, 300)
        assert storage.writes == 0
        assert store.get(StoreField.WINDOWS_MOVED) == 1
        assert store.get(StoreField.WINDOWS_RESIZED) == 1

    def test_bad_position_rejected_without_telemetry(self) -> None:
        """A non-finite move raises and counts nothing."""
        store = Store()
        manager = WindowManager(store)
        window_id = manager.create_window(_config())
        with pytest.raises(ValueError, match="finite"):
            manager.update_window_position(window_id, float("nan"), "abc")
        assert store.get(StoreField.WINDOWS_MOVED) == 0
        record = store.find_window(window_id)
        assert record is not None
        assert (record.x, record.y) == (None, None)

    def test_persisted_move_writes(self) -> None:
        """A persist=True move reaches storage."""
        storage = _CountingStorage()
        store = Store(storage=storage)
        manager = WindowManager(store)
        window_id = manager.create_window(_config())
        storage.writes = 0
        manager.update_window_position(window_id, 10, 20, persist=True)
        assert storage.writes == 1

    def test_activity_timestamp(self) -> None:
        """Operations record the time of the last activity."""
        store = Store()
        manager = WindowManager(store, clock=lambda: 42)
        manager.create_window(_config())
        assert store.get(StoreField.LAST_ACTIVITY_AT) == 42

    def test_unknown_ids_do_not_count(self) -> None:
        """Operations on missing windows change no counter."""
        store = Store()
        manager = WindowManager(store)
        assert manager.focus_window(5) is False
        assert manager.minimize_window(5) is False
        assert manager.restore_window(5) is False
        assert manager.toggle_maximize(5) is False
        assert manager.update_window_position(5, 1, 1) is False
        assert store.get(StoreField.WINDOWS_FOCUSED) == 0


class TestReconciliation:
    """Verify live instances follow the store."""

    def test_existing_windows_hydrated(self) -> None:
        """A manager built over an open collection creates instances."""
        store = Store()
        store.add_window(_config())
        store.add_window(_config())
        manager = WindowManager(store)
        assert sorted(manager.active_windows()) == [1, 2]

    def test_direct_store_changes_followed(self) -> None:
        """Windows added or removed through the store are mirrored."""
        store = Store()
        manager = WindowManager(store)
        store.add_window(_config())
        assert manager.active_windows() == [1]
        store.reset()
        assert manager.active_windows() == []

    def test_instances_receive_new_records(self) -> None:
        """Record changes reach the matching instance."""
        store = Store()
        manager = WindowManager(store)
        window_id = manager.create_window(_config())
        store.update_window(window_id, title="Renamed")
        instance = manager.get_window(window_id)
        assert instance is not None
        assert instance.record.title == "Renamed"

    def test_earlier_subscriber_changing_windows(self) -> None:
        """An earlier windows subscriber's nested write reaches the instance."""
        store = Store()

        def minimize_new(windows: list[Any], _old: Any) -> None:
            for window in windows:
                if not window.is_minimized:
                    store.minimize_window(window.id)

        store.subscribe(StoreField.WINDOWS, minimize_new)
        manager = WindowManager(store)
        window_id = manager.create_window(_config())
        instance = manager.get_window(window_id)
        assert instance is not None
        assert instance.record.is_minimized
        assert instance.record == store.find_window(window_id)

    def test_replaying_sync_is_harmless(self) -> None:
        """Syncing the same collection twice keeps the same instances."""
        store = Store()
        manager = WindowManager(store)
        window_id = manager.create_window(_config())
        instance = manager.get_window(window_id)
        manager.sync_windows(store.windows())
        manager.sync_windows(store.windows())
        assert manager.get_window(window_id) is instance

    def test_dispose_stops_reconciling(self) -> None:
        """After dispose the manager ignores the store."""
        store = Store()
        manager = WindowManager(store)
        manager.create_window(_config())
        manager.dispose()
        assert manager.active_windows() == []
        store.add_window(_config())
        assert manager.active_windows() == []
        assert store.subscriber_count(StoreField.WINDOWS) == 0

    def test_attach_after_dispose_resumes(self) -> None:
        """A disposed manager that is attached again follows the store."""
        store = Store()
        manager = WindowManager(store)
        manager.create_window(_config())
        manager.dispose()
        assert not manager.attached
        manager.attach()
        assert manager.attached
        assert manager.active_windows() == [1]
        window_id = manager.create_window(_config())
        assert manager.get_window(window_id) is not None
        assert store.subscriber_count(StoreField.WINDOWS) == 1

    def test_attach_twice_subscribes_once(self) -> None:
        """Attaching an attached manager does not double the subscription."""
        store = Store()
        manager = WindowManager(store)
        manager.attach()
        assert store.subscriber_count(StoreField.WINDOWS) == 1


class TestSingleFocus:
    """Verify focus invariants under arbitrary sequences."""

    def test_random_lifecycle_sequences(self) -> None:
        """At most one window is focused and it is on top."""
        store = Store()
        manager = WindowManager(store)
        rng = random.Random(11)
        for _ in range(200):
            ids = [w.id for w in store.windows()]
            action = rng.randrange(3)
            if action == 0 or not ids:
                manager.create_window(_config(rng.choice(list(AppType))))
            elif action == 1:
                manager.focus_window(rng.choice(ids))
            else:
                manager.close_window(rng.choice(ids))
            _assert_single_focus(store)
            assert sorted(manager.active_windows()) == sorted(w.id for w in store.windows())
