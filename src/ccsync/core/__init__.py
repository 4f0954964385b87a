"""Core sync engine components."""

from .errors import SerializationFailure, SyncError, TransientNetworkFailure

__all__ = [
    "SyncError",
    "TransientNetworkFailure",
    "SerializationFailure",
]
