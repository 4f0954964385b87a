"""CLI command modules."""

from .backups import backups
from .conflicts import conflicts
from .sync import sync
from .vendors import vendors
from .watch import ChangeMonitor, watch_command

__all__ = [
    "backups",
    "vendors",
    "sync",
    "conflicts",
    "watch_command",
    "ChangeMonitor",
]
