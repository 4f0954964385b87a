"""Claude settings file: env writer, backups and vendor switching."""

from .backup import BackupError, SettingsBackupManager
from .switcher import VendorSwitcher
from .writer import DEFAULT_SETTINGS_PATH, ClaudeSettingsWriter, SettingsError

__all__ = [
    "ClaudeSettingsWriter",
    "SettingsError",
    "DEFAULT_SETTINGS_PATH",
    "SettingsBackupManager",
    "BackupError",
    "VendorSwitcher",
]
