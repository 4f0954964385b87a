"""CLI display and formatting utilities."""

from .formatters import (
    display_backups,
    display_conflict_detail,
    display_conflicts,
    display_import_result,
    display_sync_overview,
    display_vendors,
    format_status,
    mask_value,
)

__all__ = [
    "display_backups",
    "display_vendors",
    "display_sync_overview",
    "display_conflicts",
    "display_conflict_detail",
    "display_import_result",
    "format_status",
    "mask_value",
]
