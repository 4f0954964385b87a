"""Tests for file system watching."""

import threading
from unittest.mock import Mock

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)
from watchdog.observers.polling import PollingObserver

from ccsync.core.cloud import FileKeyValueStore
from ccsync.core.watcher import (
    FileChangeHandler,
    create_observer,
    stop_watching,
    watch_file,
)


@pytest.fixture
def cloud_path(tmp_path):
    """Path of the shared cloud document."""
    return tmp_path / "cloud" / "kvstore.json"


class TestFileChangeHandler:
    """Test event filtering and callback isolation."""

    def test_modification_of_watched_file(self, cloud_path):
        """Test a write to the watched file runs the callback."""
        callback = Mock()
        handler = FileChangeHandler(cloud_path, callback)
        handler.dispatch(FileModifiedEvent(str(cloud_path)))
        callback.assert_called_once_with()

    def test_atomic_replace(self, cloud_path):
        """Test a temp file moved onto the watched name counts."""
        callback = Mock()
        handler = FileChangeHandler(cloud_path, callback)
        tmp_file = cloud_path.parent / ".kvstore.json.abc123"

        handler.dispatch(FileCreatedEvent(str(tmp_file)))
        callback.assert_not_called()

        handler.dispatch(FileMovedEvent(str(tmp_file), str(cloud_path)))
        callback.assert_called_once_with()

    def test_other_files_and_directories_ignored(self, cloud_path):
        """Test unrelated paths do not run the callback."""
        callback = Mock()
        handler = FileChangeHandler(cloud_path, callback)
        handler.dispatch(FileModifiedEvent(str(cloud_path.parent / "other.json")))
        handler.dispatch(DirModifiedEvent(str(cloud_path.parent)))
        callback.assert_not_called()

    def test_sqlite_side_files_match(self, tmp_path):
        """Test journal files count as database changes."""
        handler = FileChangeHandler(tmp_path / "ccsync.db", Mock())
        assert handler.matches(str(tmp_path / "ccsync.db-journal"))
        assert handler.matches(str(tmp_path / "ccsync.db-wal"))
        assert not handler.matches(str(tmp_path / "ccsync.dbx"))
        assert not handler.matches("")

    def test_callback_error_is_contained(self, cloud_path):
        """Test a failing callback does not propagate into the observer."""
        callback = Mock(side_effect=RuntimeError("boom"))
        handler = FileChangeHandler(cloud_path, callback)
        handler.dispatch(FileModifiedEvent(str(cloud_path)))
        callback.assert_called_once_with()

    def test_corrupt_document_does_not_break_handler(self, cloud_path):
        """Test a half-synced document is survived by the watch callback."""
        store = FileKeyValueStore(cloud_path)
        store.set("vendor_a", b"{}")
        store.synchronize()

        cloud_path.write_bytes(b"\xff\xfe" + b"garbage " * 32)
        handler = FileChangeHandler(cloud_path, store.check_for_external_changes)
        handler.dispatch(FileModifiedEvent(str(cloud_path)))

        assert store.get("vendor_a") == b"{}"


class TestObserver:
    """Test observers wired to a real directory."""

    def test_create_observer(self):
        """Test the polling flag selects the polling observer."""
        assert isinstance(create_observer(polling=True, timeout=0.1), PollingObserver)
        assert not isinstance(create_observer(), PollingObserver)

    def test_external_write_reaches_store_listeners(self, cloud_path):
        """Test another device's write is picked up through the observer."""
        local = FileKeyValueStore(cloud_path)
        changed = threading.Event()
        local.add_change_listener(lambda keys: changed.set())

        observer = create_observer(polling=True, timeout=0.1)
        watch_file(observer, cloud_path, local.check_for_external_changes)
        observer.start()
        try:
            other_device = FileKeyValueStore(cloud_path)
            # Repeat writes in case the first lands before the initial snapshot
            for attempt in range(20):
                other_device.set("vendor_a", b"payload-%d" % attempt)
                other_device.synchronize()
                if changed.wait(0.5):
                    break

            assert changed.is_set()
            assert local.get("vendor_a").startswith(b"payload-")
        finally:
            stop_watching(observer)

    def test_stop_without_observer(self):
        """Test stopping nothing is allowed."""
        stop_watching(None)
