"""Cloud key-value store backends.

The sync engine talks to an eventually consistent key-value store holding
opaque byte payloads. Two backends are provided:

- InMemoryKeyValueStore: process-local store, used by tests and previews
- FileKeyValueStore: a JSON document in a shared folder (iCloud Drive,
  Dropbox, a network mount). Writes are buffered in memory until
  ``synchronize()`` and changes written by other devices are picked up by
  ``check_for_external_changes()``.
"""

import base64
import binascii
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Set, Tuple

logger = logging.getLogger(__name__)

ChangeListener = Callable[[List[str]], None]


class KeyValueStore(Protocol):
    """Interface of the remote key-value service."""

    def set(self, key: str, value: Optional[bytes]) -> None:
        """Store ``value`` under ``key``; ``None`` removes the key."""
        ...

    def get(self, key: str) -> Optional[bytes]:
        """Return the value under ``key`` or None."""
        ...

    def remove_object(self, key: str) -> None:
        """Remove ``key`` if present."""
        ...

    def synchronize(self) -> bool:
        """Best-effort flush to durable storage."""
        ...

    def add_change_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a callback for changes made by other devices."""
        ...


class _ListenerMixin:
    """Fan-out of external-change notifications."""

    def __init__(self) -> None:
        self._listeners: List[ChangeListener] = []
        self._listeners_lock = threading.Lock()

    def add_change_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a callback for changes made by other devices.

        Args:
            listener: Called with the list of changed keys

        Returns:
            Callable that removes the listener
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def _notify_listeners(self, keys: List[str]) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(keys)


class InMemoryKeyValueStore(_ListenerMixin):
    """Key-value store kept in a dict."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None) -> None:
        """Initialize store.

        Args:
            initial: Optional initial contents
        """
        super().__init__()
        self.storage: Dict[str, bytes] = dict(initial or {})
        self.synchronize_calls = 0
        self._lock = threading.Lock()

    def set(self, key: str, value: Optional[bytes]) -> None:
        with self._lock:
            if value is None:
                self.storage.pop(key, None)
            else:
                self.storage[key] = value

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self.storage.get(key)

    def remove_object(self, key: str) -> None:
        with self._lock:
            self.storage.pop(key, None)

    def synchronize(self) -> bool:
        self.synchronize_calls += 1
        return True

    def simulate_external_change(
        self, changes: Dict[str, Optional[bytes]]
    ) -> None:
        """Apply writes as if another device made them, then notify listeners.

        Args:
            changes: Mapping of key to new value (None removes the key)
        """
        for key, value in changes.items():
            self.set(key, value)
        self._notify_listeners(list(changes))


class FileKeyValueStore(_ListenerMixin):
    """Key-value store persisted as a JSON document in a shared folder.

    Values are base64 encoded in the document. The file is rewritten
    atomically on ``synchronize()``.
    """

    def __init__(self, path: Path) -> None:
        """Initialize store and load the current document if it exists.

        Args:
            path: Location of the JSON document
        """
        super().__init__()
        self.path = Path(path)
        self._lock = threading.RLock()
        self._data: Dict[str, bytes] = {}
        self._dirty: Set[str] = set()
        self._signature: Optional[Tuple[int, int]] = None
        self._load()

    def set(self, key: str, value: Optional[bytes]) -> None:
        with self._lock:
            if value is None:
                self._data.pop(key, None)
            else:
                self._data[key] = bytes(value)
            self._dirty.add(key)

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def remove_object(self, key: str) -> None:
        self.set(key, None)

    def keys(self) -> List[str]:
        """Return all stored keys."""
        with self._lock:
            return sorted(self._data)

    def synchronize(self) -> bool:
        """Write pending changes to disk.

        Keys written by another device since the last load are merged in
        first, so only locally dirty keys overwrite the file contents.

        Returns:
            True if the document was written, False on I/O failure
        """
        with self._lock:
            try:
                on_disk = self._read_document()
                # A corrupt document is replaced by the last known contents
                merged = dict(self._data if on_disk is None else on_disk)
                for key in self._dirty:
                    if key in self._data:
                        merged[key] = self._data[key]
                    else:
                        merged.pop(key, None)
                self._write_document(merged)
            except OSError as e:
                logger.warning("Failed to write cloud store %s: %s", self.path, e)
                return False

            self._data = merged
            self._dirty.clear()
            self._signature = self._stat_signature()
            logger.debug("Cloud store synchronized (%d keys)", len(merged))
            return True

    def check_for_external_changes(self) -> List[str]:
        """Reload the document if another device rewrote it.

        Listeners are notified with the keys whose values changed. Keys with
        unsynchronized local writes keep their local value.

        Returns:
            List of changed keys (empty when nothing changed)
        """
        with self._lock:
            signature = self._stat_signature()
            if signature == self._signature:
                return []

            try:
                on_disk = self._read_document()
            except OSError as e:
                logger.warning("Failed to read cloud store %s: %s", self.path, e)
                return []

            if on_disk is None:
                # Keep the cached view until the document is rewritten
                self._signature = signature
                return []

            changed = [
                key
                for key in set(on_disk) | set(self._data)
                if key not in self._dirty and on_disk.get(key) != self._data.get(key)
            ]
            for key in changed:
                if key in on_disk:
                    self._data[key] = on_disk[key]
                else:
                    self._data.pop(key, None)
            self._signature = signature

        if changed:
            changed.sort()
            logger.info("Detected %d external change(s) in cloud store", len(changed))
            self._notify_listeners(changed)
        return changed

    def _load(self) -> None:
        try:
            self._data = self._read_document() or {}
        except OSError as e:
            logger.warning("Failed to read cloud store %s: %s", self.path, e)
            self._data = {}
        self._signature = self._stat_signature()

    def _stat_signature(self) -> Optional[Tuple[int, int]]:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return (stat.st_mtime_ns, stat.st_size)

    def _read_document(self) -> Optional[Dict[str, bytes]]:
        """Read the document from disk.

        Returns:
            Decoded entries, or None if the file is corrupt (for example
            half-written by a folder sync client)
        """
        if not self.path.exists():
            return {}

        payload = self.path.read_bytes()
        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error("Cloud store %s is not valid UTF-8: %s", self.path, e)
            return None
        if not text.strip():
            return {}

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("Cloud store %s is not valid JSON: %s", self.path, e)
            return None

        if not isinstance(raw, dict):
            logger.error("Cloud store %s does not contain an object", self.path)
            return None

        return dict(_decode_entries(raw.items()))

    def _write_document(self, data: Dict[str, bytes]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = {
            key: base64.b64encode(value).decode("ascii")
            for key, value in sorted(data.items())
        }
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


def _decode_entries(items: Iterable[Tuple[str, object]]) -> Iterable[Tuple[str, bytes]]:
    for key, value in items:
        if not isinstance(value, str):
            logger.warning("Skipping non-string cloud store entry: %s", key)
            continue
        try:
            yield key, base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("Skipping undecodable cloud store entry: %s", key)
