"""Cloud key-value store backends and the typed record adapter."""

from .kv_store import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore
from .record_store import SYNC_MANIFEST_KEY, VENDOR_KEY_PREFIX, RecordStore, vendor_key

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "FileKeyValueStore",
    "RecordStore",
    "SYNC_MANIFEST_KEY",
    "VENDOR_KEY_PREFIX",
    "vendor_key",
]
