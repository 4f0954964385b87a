"""Timestamped backups of Claude's settings.json."""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from .writer import SettingsError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class BackupError(SettingsError):
    """A backup could not be created, restored or deleted."""


class SettingsBackupManager:
    """Keeps copies of the settings file next to it.

    Backups are named ``settings.json.bak-YYYYmmdd-HHMMSS``. Only the newest
    ``max_backups`` are kept.
    """

    def __init__(
        self,
        settings_path: Union[str, Path],
        max_backups: int = 10,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize backup manager.

        Args:
            settings_path: Settings file to back up
            max_backups: Number of backups to keep
            clock: Source of backup timestamps
        """
        self.settings_path = Path(settings_path)
        self.max_backups = max_backups
        self.clock = clock

    @property
    def prefix(self) -> str:
        return f"{self.settings_path.name}.bak-"

    def backup_current_settings(self) -> Optional[Path]:
        """Copy the settings file to a new backup.

        Returns:
            Path of the backup, or None if there is no settings file yet
        """
        if not self.settings_path.exists():
            return None

        backup_path = self._next_backup_path()
        try:
            shutil.copyfile(self.settings_path, backup_path)
        except OSError as e:
            raise BackupError(f"Failed to back up {self.settings_path}: {e}") from e

        logger.info("Settings backed up to %s", backup_path.name)
        self._cleanup_old_backups()
        return backup_path

    def get_all_backups(self) -> List[Path]:
        """List backups, newest first."""
        directory = self.settings_path.parent
        if not directory.is_dir():
            return []
        backups = [
            p for p in directory.iterdir() if p.is_file() and self.is_backup(p)
        ]
        return sorted(backups, key=lambda p: p.name, reverse=True)

    def is_backup(self, path: Path) -> bool:
        return path.name.startswith(self.prefix)

    def resolve(self, name: str) -> Path:
        """Find a backup by file name or by its timestamp suffix.

        Raises:
            BackupError: If no such backup exists
        """
        for candidate in (name, f"{self.prefix}{name}"):
            path = self.settings_path.parent / candidate
            if self.is_backup(path) and path.is_file():
                return path
        raise BackupError(f"Backup not found: {name}")

    def restore_from_backup(self, backup_path: Path) -> None:
        """Replace the settings file with a backup.

        The current settings are backed up first, so a restore can itself be
        undone.

        Raises:
            BackupError: If ``backup_path`` is not a settings backup
        """
        backup_path = Path(backup_path)
        if not self.is_backup(backup_path):
            raise BackupError(f"Not a settings backup: {backup_path.name}")
        if not backup_path.is_file():
            raise BackupError(f"Backup not found: {backup_path.name}")

        self.backup_current_settings()
        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(backup_path, self.settings_path)
        except OSError as e:
            raise BackupError(f"Failed to restore {backup_path.name}: {e}") from e

        logger.info("Settings restored from %s", backup_path.name)

    def delete_backup(self, backup_path: Path) -> None:
        """Delete one backup.

        Raises:
            BackupError: If ``backup_path`` is not a settings backup
        """
        backup_path = Path(backup_path)
        if not self.is_backup(backup_path):
            raise BackupError(f"Not a settings backup: {backup_path.name}")
        try:
            backup_path.unlink()
        except OSError as e:
            raise BackupError(f"Failed to delete {backup_path.name}: {e}") from e
        logger.info("Backup deleted: %s", backup_path.name)

    def delete_all_backups(self) -> int:
        """Delete every backup.

        Returns:
            Number of backups deleted
        """
        backups = self.get_all_backups()
        for backup_path in backups:
            self.delete_backup(backup_path)
        return len(backups)

    def _next_backup_path(self) -> Path:
        stem = f"{self.prefix}{self.clock().strftime(TIMESTAMP_FORMAT)}"
        path = self.settings_path.parent / stem
        counter = 1
        # Several switches within one second
        while path.exists():
            path = self.settings_path.parent / f"{stem}-{counter}"
            counter += 1
        return path

    def _cleanup_old_backups(self) -> None:
        for old in self.get_all_backups()[self.max_backups :]:
            logger.debug("Removing old backup %s", old.name)
            self.delete_backup(old)
