"""Tests for database models and service."""

from unittest.mock import Mock

import pytest

from ccsync.core.store import (
    CannotRemoveLastVendorError,
    ChangeNotificationBus,
    VendorAlreadyExistsError,
    VendorNotFoundError,
)
from ccsync.database import DatabaseService, VendorRecord
from ccsync.models import SyncManifest, Vendor


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary database for testing."""
    db_service = DatabaseService(tmp_path / "test.db")
    yield db_service
    db_service.close()


@pytest.fixture
def populated_db(temp_db):
    """Database with two vendors."""
    temp_db.add_vendor(Vendor(id="a", name="A", env={"URL": "x"}))
    temp_db.add_vendor(Vendor(id="b", name="B", env={"TOKEN": "t"}))
    return temp_db


class TestDatabaseModels:
    """Test database models."""

    def test_vendor_record_env_round_trip(self):
        """Test env is stored as JSON and converts back to a Vendor."""
        record = VendorRecord(id="a", name="A", position=0)
        record.env = {"URL": "x"}
        assert record.env_json == '{"URL": "x"}'
        assert record.to_vendor() == Vendor(id="a", name="A", env={"URL": "x"})


class TestDatabaseService:
    """Test database service operations."""

    def test_init_db(self, temp_db):
        """Test database initialization."""
        assert temp_db.db_path.exists()
        stats = temp_db.get_statistics()
        assert stats["vendors"] == 0
        assert stats["revision"] == 0

    def test_add_and_get_vendor(self, populated_db):
        """Test vendors read back equal and in insertion order."""
        assert populated_db.get_vendor("a") == Vendor(id="a", name="A", env={"URL": "x"})
        assert [v.id for v in populated_db.get_all_vendors()] == ["a", "b"]
        assert populated_db.get_vendor("zzz") is None

    def test_first_vendor_becomes_current(self, populated_db):
        """Test the first added vendor is current."""
        assert populated_db.get_current_vendor().id == "a"

    def test_add_duplicate(self, populated_db):
        """Test adding an existing id fails."""
        with pytest.raises(VendorAlreadyExistsError):
            populated_db.add_vendor(Vendor(id="a", name="Again"))

    def test_update_vendor(self, populated_db):
        """Test updating replaces name and env and clears the preset marker."""
        populated_db.set_presets(["a"])
        populated_db.update_vendor(Vendor(id="a", name="A2", env={"URL": "y"}))

        assert populated_db.get_vendor("a") == Vendor(id="a", name="A2", env={"URL": "y"})
        assert populated_db.get_presets() == set()

    def test_update_missing_vendor(self, temp_db):
        """Test updating an unknown vendor fails."""
        with pytest.raises(VendorNotFoundError):
            temp_db.update_vendor(Vendor(id="zzz", name="Z"))

    def test_remove_current_vendor(self, populated_db):
        """Test removing the current vendor selects the first remaining one."""
        populated_db.remove_vendor("a")
        assert populated_db.get_current_vendor().id == "b"
        assert [v.id for v in populated_db.get_all_vendors()] == ["b"]

    def test_cannot_remove_last_vendor(self, temp_db):
        """Test the last vendor cannot be removed."""
        temp_db.add_vendor(Vendor(id="a", name="A"))
        with pytest.raises(CannotRemoveLastVendorError):
            temp_db.remove_vendor("a")

    def test_set_current_vendor(self, populated_db):
        """Test selecting another vendor."""
        populated_db.set_current_vendor("b")
        assert populated_db.get_current_vendor().id == "b"
        with pytest.raises(VendorNotFoundError):
            populated_db.set_current_vendor("zzz")

    def test_favorites(self, populated_db):
        """Test favorite markers."""
        populated_db.set_favorites(["b"])
        assert populated_db.get_favorites() == {"b"}
        populated_db.set_favorites([])
        assert populated_db.get_favorites() == set()

    def test_sync_manifest(self, temp_db):
        """Test the manifest is persisted as given."""
        assert temp_db.load_sync_manifest() is None
        manifest = SyncManifest(enabled=True, synced_vendor_ids=["a", "b"])
        temp_db.save_sync_manifest(manifest)
        assert temp_db.load_sync_manifest() == manifest

    def test_data_survives_reopen(self, tmp_path):
        """Test a second service on the same file sees the data."""
        path = tmp_path / "test.db"
        first = DatabaseService(path)
        first.add_vendor(Vendor(id="a", name="A"))
        first.save_sync_manifest(SyncManifest(enabled=True))
        first.close()

        second = DatabaseService(path)
        assert second.get_vendor("a") is not None
        assert second.load_sync_manifest().enabled is True
        second.close()


class TestChangeTracking:
    """Test revision counting and change notification."""

    def test_writes_bump_revision(self, temp_db):
        """Test each configuration write increments the revision."""
        temp_db.add_vendor(Vendor(id="a", name="A"))
        temp_db.add_vendor(Vendor(id="b", name="B"))
        temp_db.set_current_vendor("b")
        assert temp_db.get_revision() == 3

    def test_manifest_save_does_not_bump_revision(self, temp_db):
        """Test sync bookkeeping is not a configuration change."""
        temp_db.save_sync_manifest(SyncManifest(enabled=True))
        assert temp_db.get_revision() == 0

    def test_writes_publish_on_bus(self, tmp_path):
        """Test configuration writes are published on the change bus."""
        bus = ChangeNotificationBus()
        observer = Mock()
        bus.subscribe(observer)
        db_service = DatabaseService(tmp_path / "test.db", change_bus=bus)

        db_service.add_vendor(Vendor(id="a", name="A"))
        db_service.save_sync_manifest(SyncManifest())

        observer.assert_called_once_with()
        db_service.close()

    def test_failed_write_does_not_publish(self, tmp_path):
        """Test rejected writes leave the revision alone."""
        db_service = DatabaseService(tmp_path / "test.db")
        db_service.add_vendor(Vendor(id="a", name="A"))
        with pytest.raises(VendorAlreadyExistsError):
            db_service.add_vendor(Vendor(id="a", name="A"))
        assert db_service.get_revision() == 1
        db_service.close()
