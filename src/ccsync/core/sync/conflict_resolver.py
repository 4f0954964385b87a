"""Conflict resolution for sync operations.

A conflict is resolved by picking one side:

- KEEP_LOCAL: the local vendor overwrites the cloud copy (local store untouched)
- KEEP_REMOTE: the cloud copy overwrites the local vendor (cloud untouched)
"""

import logging
from enum import Enum

from ..cloud.record_store import RecordStore
from ..store.repository import ConfigurationRepository
from .conflict_detector import Conflict

logger = logging.getLogger(__name__)


class ConflictResolution(str, Enum):
    """Resolution strategies for conflicts."""

    KEEP_LOCAL = "keep_local"
    KEEP_REMOTE = "keep_remote"

    @classmethod
    def from_keep_local(cls, keep_local: bool) -> "ConflictResolution":
        return cls.KEEP_LOCAL if keep_local else cls.KEEP_REMOTE


class ConflictResolver:
    """Applies a resolution to one conflict."""

    def __init__(self, repository: ConfigurationRepository, record_store: RecordStore):
        """Initialize conflict resolver.

        Args:
            repository: Local configuration store
            record_store: Cloud record adapter
        """
        self.repository = repository
        self.record_store = record_store

    def apply(self, conflict: Conflict, resolution: ConflictResolution) -> None:
        """Apply a resolution to a conflict.

        Args:
            conflict: The conflict to resolve
            resolution: Side to keep

        Raises:
            TransientNetworkFailure: If writing the cloud copy fails
            ConfigurationError: If updating the local store fails
        """
        if resolution == ConflictResolution.KEEP_LOCAL:
            self.record_store.put_vendor(conflict.local)
            self.record_store.flush()
            logger.info("Resolved conflict for %s: kept local version", conflict.vendor_id)
        else:
            self.repository.update_vendor(conflict.remote)
            logger.info("Resolved conflict for %s: applied cloud version", conflict.vendor_id)
