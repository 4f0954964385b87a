"""Tests for conflict resolver."""

from unittest.mock import Mock

import pytest

from ccsync.core.cloud import InMemoryKeyValueStore, RecordStore
from ccsync.core.errors import TransientNetworkFailure
from ccsync.core.store import InMemoryConfigurationRepository
from ccsync.core.sync import Conflict, ConflictResolution, ConflictResolver
from ccsync.models import Vendor

LOCAL = Vendor(id="a", name="A", env={"URL": "x"})
REMOTE = Vendor(id="a", name="A", env={"URL": "y"})


@pytest.fixture
def repository():
    """Create a repository holding the local version."""
    return InMemoryConfigurationRepository([LOCAL])


@pytest.fixture
def kv_store():
    """Create a cloud store holding the remote version."""
    store = InMemoryKeyValueStore()
    RecordStore(store).put_vendor(REMOTE)
    return store


@pytest.fixture
def resolver(repository, kv_store):
    """Create a conflict resolver."""
    return ConflictResolver(repository, RecordStore(kv_store))


@pytest.fixture
def conflict():
    """The conflict between the two versions."""
    return Conflict(vendor_id="a", local=LOCAL, remote=REMOTE)


class TestConflictResolution:
    """Test the resolution enum."""

    def test_from_keep_local(self):
        """Test mapping the keep-local flag."""
        assert ConflictResolution.from_keep_local(True) == ConflictResolution.KEEP_LOCAL
        assert ConflictResolution.from_keep_local(False) == ConflictResolution.KEEP_REMOTE


class TestConflictResolver:
    """Test applying resolutions."""

    def test_keep_local_overwrites_cloud(self, resolver, conflict, repository, kv_store):
        """Test keeping local writes the local version to the cloud."""
        resolver.apply(conflict, ConflictResolution.KEEP_LOCAL)

        assert RecordStore(kv_store).get_vendor("a") == LOCAL
        assert repository.get_vendor("a") == LOCAL
        assert kv_store.synchronize_calls == 1

    def test_keep_remote_overwrites_local(self, resolver, conflict, repository, kv_store):
        """Test keeping remote writes the cloud version locally."""
        resolver.apply(conflict, ConflictResolution.KEEP_REMOTE)

        assert repository.get_vendor("a") == REMOTE
        assert RecordStore(kv_store).get_vendor("a") == REMOTE
        assert kv_store.synchronize_calls == 0

    def test_keep_local_failure_raises(self, repository, conflict):
        """Test cloud write failures propagate."""
        backend = Mock()
        backend.set.side_effect = ConnectionError("offline")
        resolver = ConflictResolver(repository, RecordStore(backend))

        with pytest.raises(TransientNetworkFailure):
            resolver.apply(conflict, ConflictResolution.KEEP_LOCAL)
