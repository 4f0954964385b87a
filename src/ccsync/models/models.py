"""Data models for vendor profiles and the sync manifest."""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Vendor(BaseModel):
    """A named configuration profile (credentials, endpoints, model names).

    Equality is structural: two vendors are equal when id, name and the full
    env mapping match.
    """

    id: str
    name: str
    env: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Reject empty identifiers."""
        if not v or not v.strip():
            raise ValueError("vendor id must not be empty")
        return v

    @property
    def display_name(self) -> str:
        """Name shown to users, falling back to the id."""
        return self.name or self.id


class SyncManifest(BaseModel):
    """Sync switch plus the ids of vendors mirrored to the cloud.

    The id list keeps insertion order but only membership matters.
    """

    enabled: bool = Field(default=False, alias="isSyncEnabled")
    synced_vendor_ids: List[str] = Field(
        default_factory=list, alias="syncedVendorIds"
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("synced_vendor_ids", mode="after")
    @classmethod
    def drop_duplicates(cls, v: List[str]) -> List[str]:
        """Remove duplicate ids, keeping the first occurrence."""
        return list(dict.fromkeys(v))

    def contains(self, vendor_id: str) -> bool:
        """Check if a vendor is configured for sync."""
        return vendor_id in self.synced_vendor_ids

    def add(self, vendor_id: str) -> "SyncManifest":
        """Return a manifest that includes ``vendor_id``."""
        if self.contains(vendor_id):
            return self
        return self.with_ids([*self.synced_vendor_ids, vendor_id])

    def remove(self, vendor_id: str) -> "SyncManifest":
        """Return a manifest without ``vendor_id``."""
        return self.with_ids([i for i in self.synced_vendor_ids if i != vendor_id])

    def with_ids(self, vendor_ids: List[str]) -> "SyncManifest":
        """Return a manifest tracking exactly ``vendor_ids``."""
        return SyncManifest(enabled=self.enabled, synced_vendor_ids=list(vendor_ids))

    def with_enabled(self, enabled: bool) -> "SyncManifest":
        """Return a manifest with the sync switch set."""
        return SyncManifest(enabled=enabled, synced_vendor_ids=self.synced_vendor_ids)
