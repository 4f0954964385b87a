"""Local configuration store interface and in-memory implementation."""

import logging
from typing import Iterable, List, Optional, Protocol, Set

from ...models import SyncManifest, Vendor

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Base class for configuration store errors."""


class VendorNotFoundError(ConfigurationError):
    """The vendor does not exist."""

    def __init__(self, vendor_id: str):
        self.vendor_id = vendor_id
        super().__init__(f"Vendor not found: {vendor_id}")


class VendorAlreadyExistsError(ConfigurationError):
    """A vendor with the same id already exists."""

    def __init__(self, vendor_id: str):
        self.vendor_id = vendor_id
        super().__init__(f"Vendor already exists: {vendor_id}")


class CannotRemoveLastVendorError(ConfigurationError):
    """At least one vendor must remain configured."""

    def __init__(self, vendor_id: str):
        self.vendor_id = vendor_id
        super().__init__(f"Cannot remove the last vendor: {vendor_id}")


class ConfigurationRepository(Protocol):
    """Durable local storage of vendors and their markers."""

    def get_all_vendors(self) -> List[Vendor]: ...

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]: ...

    def add_vendor(self, vendor: Vendor) -> None: ...

    def update_vendor(self, vendor: Vendor) -> None: ...

    def remove_vendor(self, vendor_id: str) -> None: ...

    def get_current_vendor(self) -> Optional[Vendor]: ...

    def set_current_vendor(self, vendor_id: str) -> None: ...

    def get_favorites(self) -> Set[str]: ...

    def set_favorites(self, vendor_ids: Iterable[str]) -> None: ...

    def get_presets(self) -> Set[str]: ...

    def set_presets(self, vendor_ids: Iterable[str]) -> None: ...

    def load_sync_manifest(self) -> Optional[SyncManifest]: ...

    def save_sync_manifest(self, manifest: SyncManifest) -> None: ...


class InMemoryConfigurationRepository:
    """Configuration repository kept in memory.

    Useful for tests, previews and temporary data handling. Not thread-safe;
    the sync controller only touches it from its owner thread.
    """

    def __init__(self, vendors: Optional[Iterable[Vendor]] = None):
        self._vendors: List[Vendor] = []
        self._current: Optional[str] = None
        self._favorites: Set[str] = set()
        self._presets: Set[str] = set()
        self._manifest: Optional[SyncManifest] = None
        self.load_vendors(vendors or [])

    def get_all_vendors(self) -> List[Vendor]:
        return list(self._vendors)

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]:
        return next((v for v in self._vendors if v.id == vendor_id), None)

    def add_vendor(self, vendor: Vendor) -> None:
        if self.get_vendor(vendor.id) is not None:
            raise VendorAlreadyExistsError(vendor.id)
        self._vendors.append(vendor)
        # First vendor becomes current
        if self._current is None:
            self._current = vendor.id

    def update_vendor(self, vendor: Vendor) -> None:
        index = self._index_of(vendor.id)
        self._vendors[index] = vendor
        # An edited preset is no longer a preset
        self._presets.discard(vendor.id)

    def remove_vendor(self, vendor_id: str) -> None:
        index = self._index_of(vendor_id)
        if len(self._vendors) == 1:
            raise CannotRemoveLastVendorError(vendor_id)

        del self._vendors[index]
        self._favorites.discard(vendor_id)
        self._presets.discard(vendor_id)
        if self._current == vendor_id:
            self._current = self._vendors[0].id

    def get_current_vendor(self) -> Optional[Vendor]:
        if self._current is None:
            return None
        return self.get_vendor(self._current)

    def set_current_vendor(self, vendor_id: str) -> None:
        self._index_of(vendor_id)
        self._current = vendor_id

    def get_favorites(self) -> Set[str]:
        return set(self._favorites)

    def set_favorites(self, vendor_ids: Iterable[str]) -> None:
        self._favorites = set(vendor_ids)

    def get_presets(self) -> Set[str]:
        return set(self._presets)

    def set_presets(self, vendor_ids: Iterable[str]) -> None:
        self._presets = set(vendor_ids)

    def load_sync_manifest(self) -> Optional[SyncManifest]:
        return self._manifest

    def save_sync_manifest(self, manifest: SyncManifest) -> None:
        self._manifest = manifest

    def load_vendors(self, vendors: Iterable[Vendor]) -> None:
        """Replace all vendors."""
        self._vendors = list(vendors)
        if self._current is None and self._vendors:
            self._current = self._vendors[0].id

    def _index_of(self, vendor_id: str) -> int:
        for index, vendor in enumerate(self._vendors):
            if vendor.id == vendor_id:
                return index
        raise VendorNotFoundError(vendor_id)
