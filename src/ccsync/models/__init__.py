"""Models for the ccsync application."""

from .models import SyncManifest, Vendor

__all__ = [
    "Vendor",
    "SyncManifest",
]
