"""Sync status values exposed to the UI layer."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SyncState(str, Enum):
    """States of the sync status machine."""

    IDLE = "idle"
    SYNCING = "syncing"
    SUCCESS = "success"
    OFFLINE = "offline"
    ERROR = "error"


@dataclass(frozen=True)
class SyncStatus:
    """Current sync status; ``message`` is only set for errors."""

    state: SyncState
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> "SyncStatus":
        return cls(SyncState.IDLE)

    @classmethod
    def syncing(cls) -> "SyncStatus":
        return cls(SyncState.SYNCING)

    @classmethod
    def success(cls) -> "SyncStatus":
        return cls(SyncState.SUCCESS)

    @classmethod
    def offline(cls) -> "SyncStatus":
        return cls(SyncState.OFFLINE)

    @classmethod
    def error(cls, message: str) -> "SyncStatus":
        return cls(SyncState.ERROR, message)

    @property
    def is_active(self) -> bool:
        """Check if a sync cycle is running."""
        return self.state == SyncState.SYNCING

    @property
    def has_error(self) -> bool:
        """Check if the status is an error."""
        return self.state == SyncState.ERROR

    @property
    def error_message(self) -> Optional[str]:
        """Error message, or None outside the error state."""
        return self.message if self.has_error else None

    def __str__(self) -> str:
        """String representation of status."""
        if self.message:
            return f"{self.state.value}: {self.message}"
        return self.state.value
