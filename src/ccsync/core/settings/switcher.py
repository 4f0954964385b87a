"""Switching the vendor Claude uses on this device."""

import logging
from typing import Optional

from ...models import Vendor
from ..store import ConfigurationRepository, VendorNotFoundError
from .backup import BackupError, SettingsBackupManager
from .writer import ClaudeSettingsWriter

logger = logging.getLogger(__name__)


class VendorSwitcher:
    """Applies a vendor's env to Claude's settings and marks it current."""

    def __init__(
        self,
        repository: ConfigurationRepository,
        writer: ClaudeSettingsWriter,
        backup: Optional[SettingsBackupManager] = None,
    ):
        """Initialize switcher.

        Args:
            repository: Local configuration store
            writer: Settings file writer
            backup: Takes a copy of the settings before each switch; optional
        """
        self.repository = repository
        self.writer = writer
        self.backup = backup

    def switch_to_vendor(self, vendor_id: str) -> Vendor:
        """Write the vendor's env to the settings file and make it current.

        A failed backup does not stop the switch. A failed settings write
        does, and the current vendor is left unchanged.

        Returns:
            The vendor now in use

        Raises:
            VendorNotFoundError: If the vendor does not exist
            SettingsError: If the settings file cannot be written
        """
        vendor = self.repository.get_vendor(vendor_id)
        if vendor is None:
            raise VendorNotFoundError(vendor_id)

        previous = self.repository.get_current_vendor()

        if self.backup is not None:
            try:
                self.backup.backup_current_settings()
            except BackupError as e:
                logger.warning("Continuing without settings backup: %s", e)

        self.writer.write_settings(vendor.env)
        self.repository.set_current_vendor(vendor_id)

        logger.info(
            "Switched vendor %s -> %s", previous.id if previous else None, vendor_id
        )
        return vendor
