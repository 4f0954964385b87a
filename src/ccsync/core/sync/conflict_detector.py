"""Pairwise comparison of local vendors against their cloud copies."""

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Iterable, List, Sequence

from ...models import Vendor
from ..cloud.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    """Local and cloud versions of a vendor that differ."""

    vendor_id: str
    local: Vendor
    remote: Vendor

    def changed_keys(self) -> List[str]:
        """Env keys whose values differ between the two versions."""
        keys = set(self.local.env) | set(self.remote.env)
        return sorted(k for k in keys if self.local.env.get(k) != self.remote.env.get(k))

    def __str__(self) -> str:
        """String representation of conflict."""
        parts = [f"conflict: {self.vendor_id}"]
        if self.local.name != self.remote.name:
            parts.append(f"(name: {self.local.name} → {self.remote.name})")
        changed = self.changed_keys()
        if changed:
            parts.append(f"[env: {', '.join(changed)}]")
        return " ".join(parts)


@dataclass
class DetectionResult:
    """Outcome of scanning the synced ids."""

    conflicts: List[Conflict] = dataclass_field(default_factory=list)
    imports: List[Vendor] = dataclass_field(default_factory=list)
    unchanged: List[str] = dataclass_field(default_factory=list)
    missing: List[str] = dataclass_field(default_factory=list)


def detect_conflicts(
    local_vendors: Iterable[Vendor],
    synced_ids: Sequence[str],
    record_store: RecordStore,
) -> DetectionResult:
    """Compare each synced vendor with its cloud copy.

    Performs one cloud read per id. Results follow ``synced_ids`` order.

    Args:
        local_vendors: Current local vendors
        synced_ids: Ids listed in the sync manifest
        record_store: Cloud record adapter

    Returns:
        DetectionResult with conflicts and vendors that only exist remotely
        (to be imported by the caller)
    """
    local_by_id = {vendor.id: vendor for vendor in local_vendors}
    result = DetectionResult()

    for vendor_id in synced_ids:
        remote = record_store.get_vendor(vendor_id)
        local = local_by_id.get(vendor_id)

        if remote is None:
            # Nothing to reconcile without a cloud copy
            result.missing.append(vendor_id)
        elif local is None:
            result.imports.append(remote)
        elif local == remote:
            result.unchanged.append(vendor_id)
        else:
            result.conflicts.append(Conflict(vendor_id=vendor_id, local=local, remote=remote))

    logger.debug(
        "Conflict scan: %d conflicts, %d imports, %d unchanged, %d missing remotely",
        len(result.conflicts),
        len(result.imports),
        len(result.unchanged),
        len(result.missing),
    )
    return result
