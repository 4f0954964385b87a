"""ccsync - vendor profile sync.

Keeps named vendor profiles (credentials, endpoints, model names) in sync
between a local SQLite store and a shared cloud key-value document.
"""

__version__ = "1.0.0"

from .config import Config
from .models import SyncManifest, Vendor

__all__ = [
    "Config",
    "Vendor",
    "SyncManifest",
]
