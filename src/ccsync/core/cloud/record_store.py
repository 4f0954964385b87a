"""Typed access to vendors and the sync manifest in the cloud store."""

import logging
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ...models import SyncManifest, Vendor
from ..errors import SerializationFailure, TransientNetworkFailure
from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)

SYNC_MANIFEST_KEY = "sync_configuration"
VENDOR_KEY_PREFIX = "vendor_"

ModelT = TypeVar("ModelT", bound=BaseModel)


def vendor_key(vendor_id: str) -> str:
    """Cloud store key holding a vendor payload."""
    return f"{VENDOR_KEY_PREFIX}{vendor_id}"


class RecordStore:
    """Record store adapter over a ``KeyValueStore``.

    Read paths never raise: missing, malformed or unreadable payloads come
    back as None. Write paths wrap any backend error in
    ``TransientNetworkFailure``.
    """

    def __init__(self, kv_store: KeyValueStore):
        """Initialize adapter.

        Args:
            kv_store: Backend key-value store
        """
        self.kv_store = kv_store

    def put_vendor(self, vendor: Vendor) -> None:
        """Write a vendor payload."""
        self._put(vendor_key(vendor.id), vendor.model_dump_json().encode("utf-8"))

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]:
        """Read a vendor payload, or None if absent or malformed."""
        vendor = self._get(vendor_key(vendor_id), Vendor)
        if vendor is not None and vendor.id != vendor_id:
            logger.warning(
                "Ignoring vendor payload under %s with mismatched id %s",
                vendor_key(vendor_id),
                vendor.id,
            )
            return None
        return vendor

    def put_manifest(self, manifest: SyncManifest) -> None:
        """Write the sync manifest."""
        payload = manifest.model_dump_json(by_alias=True).encode("utf-8")
        self._put(SYNC_MANIFEST_KEY, payload)

    def get_manifest(self) -> Optional[SyncManifest]:
        """Read the sync manifest, or None if absent or malformed."""
        return self._get(SYNC_MANIFEST_KEY, SyncManifest)

    def flush(self) -> bool:
        """Ask the backend to persist pending writes.

        A False result is logged and otherwise ignored; the writes are not
        rolled back.
        """
        try:
            flushed = self.kv_store.synchronize()
        except Exception as e:
            raise TransientNetworkFailure("Synchronizing cloud store", e) from e

        if not flushed:
            logger.warning("Cloud storage synchronization to disk returned false")
        return flushed

    def _put(self, key: str, payload: bytes) -> None:
        try:
            self.kv_store.set(key, payload)
        except Exception as e:
            raise TransientNetworkFailure(f"Writing {key}", e) from e

    def _get(self, key: str, model: Type[ModelT]) -> Optional[ModelT]:
        try:
            payload = self.kv_store.get(key)
        except Exception as e:
            logger.error("Failed to read %s from cloud store: %s", key, e)
            return None

        if payload is None:
            return None

        try:
            return self._decode(key, payload, model)
        except SerializationFailure as e:
            logger.warning("%s", e)
            return None

    @staticmethod
    def _decode(key: str, payload: object, model: Type[ModelT]) -> ModelT:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        if not isinstance(payload, (bytes, bytearray)):
            raise SerializationFailure(key, f"unexpected type {type(payload).__name__}")
        try:
            return model.model_validate_json(payload)
        except ValidationError as e:
            raise SerializationFailure(key, str(e)) from e
