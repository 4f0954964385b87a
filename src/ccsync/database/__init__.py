"""Database package: SQLite-backed local configuration store."""

from .models import AppSetting, Base, VendorRecord
from .service import DatabaseService

__all__ = [
    # Models
    "Base",
    "VendorRecord",
    "AppSetting",
    # Database service
    "DatabaseService",
]
