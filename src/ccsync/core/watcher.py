"""File system watching for the local database and the cloud document.

Both stores are plain files written by other processes: the CLI commands
write the database, folder sync clients rewrite the cloud document. A
watchdog observer reports those writes so the sync process can react
without a polling loop of its own.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Optional, Union

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

logger = logging.getLogger(__name__)

_CHANGE_EVENTS = {
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
}


class FileChangeHandler(FileSystemEventHandler):
    """Runs a callback when one file (or its SQLite side files) changes.

    Atomic replaces show up as a move onto the watched name, so the
    destination of move events is matched as well. Errors raised by the
    callback are logged and do not stop the observer.
    """

    def __init__(self, path: Union[str, Path], callback: Callable[[], object]):
        """Initialize handler.

        Args:
            path: File to watch; its parent directory is observed
            callback: Called without arguments for every matching event
        """
        super().__init__()
        self.path = Path(path)
        self.callback = callback

    def matches(self, event_path: Union[str, bytes]) -> bool:
        """True if ``event_path`` names the watched file.

        ``ccsync.db-journal`` and ``ccsync.db-wal`` count as the database.
        """
        if isinstance(event_path, bytes):
            event_path = os.fsdecode(event_path)
        if not event_path:
            return False
        name = os.path.basename(event_path)
        return name == self.path.name or name.startswith(f"{self.path.name}-")

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        dest_path = getattr(event, "dest_path", "")
        if not (self.matches(event.src_path) or self.matches(dest_path)):
            return

        logger.debug("%s: %s", event.event_type, event.src_path)
        try:
            self.callback()
        except Exception:
            logger.exception("Handling change to %s failed", self.path)


def create_observer(polling: bool = False, timeout: float = 1.0) -> BaseObserver:
    """Create a native observer, or a polling one for network mounts.

    Args:
        polling: Use stat-based polling instead of OS notifications
        timeout: Seconds between polls (polling observer only)
    """
    if polling:
        return PollingObserver(timeout=timeout)
    return Observer()


def watch_file(
    observer: BaseObserver,
    path: Union[str, Path],
    callback: Callable[[], object],
) -> FileChangeHandler:
    """Schedule ``callback`` for changes to ``path`` on ``observer``.

    The parent directory is created if needed and observed non-recursively.

    Returns:
        The scheduled handler
    """
    path = Path(path).absolute()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = FileChangeHandler(path, callback)
    observer.schedule(handler, str(path.parent), recursive=False)
    logger.info("Watching %s", path)
    return handler


def start_watching(
    observer: BaseObserver,
    database_path: Path,
    cloud_store_path: Path,
    on_local_change: Callable[[], object],
    on_cloud_change: Callable[[], object],
) -> BaseObserver:
    """Watch both stores and start the observer."""
    watch_file(observer, database_path, on_local_change)
    watch_file(observer, cloud_store_path, on_cloud_change)
    observer.start()
    return observer


def stop_watching(observer: Optional[BaseObserver], timeout: float = 5.0) -> None:
    """Stop an observer started by ``start_watching``."""
    if observer is None:
        return
    observer.stop()
    observer.join(timeout)
