"""Tests for cloud key-value store backends."""

import json

import pytest

from ccsync.core.cloud import FileKeyValueStore, InMemoryKeyValueStore


@pytest.fixture
def store_path(tmp_path):
    """Path of a shared cloud document."""
    return tmp_path / "cloud" / "kvstore.json"


class TestInMemoryKeyValueStore:
    """Test the in-memory backend."""

    def test_set_get_remove(self):
        """Test basic value storage."""
        store = InMemoryKeyValueStore()
        store.set("k", b"v")
        assert store.get("k") == b"v"
        store.remove_object("k")
        assert store.get("k") is None

    def test_set_none_removes(self):
        """Test writing None deletes the key."""
        store = InMemoryKeyValueStore({"k": b"v"})
        store.set("k", None)
        assert "k" not in store.storage

    def test_synchronize_counts_calls(self):
        """Test synchronize reports success and is counted."""
        store = InMemoryKeyValueStore()
        assert store.synchronize() is True
        assert store.synchronize_calls == 1

    def test_external_change_notifies(self):
        """Test simulated remote writes reach listeners."""
        store = InMemoryKeyValueStore()
        seen = []
        remove = store.add_change_listener(seen.append)

        store.simulate_external_change({"a": b"1", "b": None})
        assert seen == [["a", "b"]]
        assert store.get("a") == b"1"

        remove()
        store.simulate_external_change({"a": b"2"})
        assert len(seen) == 1


class TestFileKeyValueStore:
    """Test the shared-folder backend."""

    def test_missing_file_is_empty(self, store_path):
        """Test a store without a document has no keys."""
        store = FileKeyValueStore(store_path)
        assert store.keys() == []
        assert store.get("anything") is None

    def test_writes_are_buffered_until_synchronize(self, store_path):
        """Test nothing reaches disk before synchronize."""
        store = FileKeyValueStore(store_path)
        store.set("k", b"value")
        assert not store_path.exists()

        assert store.synchronize() is True
        assert store_path.exists()
        assert FileKeyValueStore(store_path).get("k") == b"value"

    def test_document_is_base64_json(self, store_path):
        """Test values are stored base64 encoded."""
        store = FileKeyValueStore(store_path)
        store.set("k", b"hello")
        store.synchronize()

        document = json.loads(store_path.read_text())
        assert document == {"k": "aGVsbG8="}

    def test_synchronize_merges_other_devices_keys(self, store_path):
        """Test keys written elsewhere survive a local synchronize."""
        device_a = FileKeyValueStore(store_path)
        device_b = FileKeyValueStore(store_path)

        device_a.set("a", b"1")
        device_a.synchronize()
        device_b.set("b", b"2")
        device_b.synchronize()

        merged = FileKeyValueStore(store_path)
        assert merged.get("a") == b"1"
        assert merged.get("b") == b"2"

    def test_removal_is_synchronized(self, store_path):
        """Test removed keys disappear from the document."""
        store = FileKeyValueStore(store_path)
        store.set("k", b"v")
        store.synchronize()
        store.remove_object("k")
        store.synchronize()
        assert FileKeyValueStore(store_path).get("k") is None

    def test_detects_external_changes(self, store_path):
        """Test another device's writes are picked up and announced."""
        local = FileKeyValueStore(store_path)
        seen = []
        local.add_change_listener(seen.append)

        remote = FileKeyValueStore(store_path)
        remote.set("vendor_a", b"payload")
        remote.synchronize()

        assert local.check_for_external_changes() == ["vendor_a"]
        assert local.get("vendor_a") == b"payload"
        assert seen == [["vendor_a"]]

        # No second notification without a new write
        assert local.check_for_external_changes() == []

    def test_own_writes_are_not_external(self, store_path):
        """Test a device does not notify itself about its own writes."""
        store = FileKeyValueStore(store_path)
        seen = []
        store.add_change_listener(seen.append)
        store.set("k", b"v")
        store.synchronize()

        assert store.check_for_external_changes() == []
        assert seen == []

    def test_invalid_document_is_treated_as_empty(self, store_path):
        """Test a corrupt document does not raise."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text("{not json")
        store = FileKeyValueStore(store_path)
        assert store.keys() == []

    def test_invalid_utf8_document_is_treated_as_empty(self, store_path):
        """Test a document with broken UTF-8 does not raise on load."""
        store_path.parent.mkdir(parents=True)
        store_path.write_bytes(b'{"vendor_a": "\xff\xfe"}')
        store = FileKeyValueStore(store_path)
        assert store.keys() == []

    def test_corrupt_rewrite_keeps_cached_values(self, store_path):
        """Test a half-synced rewrite neither raises nor drops known keys."""
        remote = FileKeyValueStore(store_path)
        remote.set("vendor_a", b"payload")
        remote.synchronize()

        local = FileKeyValueStore(store_path)
        seen = []
        local.add_change_listener(seen.append)

        store_path.write_bytes(b"\xff\xfe" + b"garbage " * 32)

        assert local.check_for_external_changes() == []
        assert local.get("vendor_a") == b"payload"
        assert seen == []

    def test_synchronize_over_corrupt_document(self, store_path):
        """Test a corrupt document is replaced by the full cached contents."""
        store = FileKeyValueStore(store_path)
        store.set("a", b"1")
        store.synchronize()

        store_path.write_bytes(b"\xff\xfe")
        store.set("b", b"2")
        assert store.synchronize() is True

        reloaded = FileKeyValueStore(store_path)
        assert reloaded.get("a") == b"1"
        assert reloaded.get("b") == b"2"

    def test_skips_non_base64_entries(self, store_path):
        """Test undecodable entries are dropped on load."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text(json.dumps({"good": "aGk=", "bad": "***", "num": 3}))
        store = FileKeyValueStore(store_path)
        assert store.keys() == ["good"]
        assert store.get("good") == b"hi"

    def test_synchronize_failure_returns_false(self, store_path, monkeypatch):
        """Test an I/O error while writing reports False."""
        store = FileKeyValueStore(store_path)
        store.set("k", b"v")

        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(store, "_write_document", fail)
        assert store.synchronize() is False
        # Pending write is kept for the next attempt
        assert store.get("k") == b"v"
