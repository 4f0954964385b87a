"""Helpers shared by CLI commands."""

import logging
import time
from concurrent.futures import Future
from typing import Any, Dict, Iterable, Optional

import click

from ...config import Config
from ...core.cloud import FileKeyValueStore
from ...core.network import ReachabilityTracker
from ...core.settings import ClaudeSettingsWriter, SettingsBackupManager, VendorSwitcher
from ...core.store import ChangeNotificationBus
from ...core.sync import ManualScheduler, Scheduler, SyncController
from ...database import DatabaseService

logger = logging.getLogger(__name__)


def open_repository(
    config: Config, change_bus: Optional[ChangeNotificationBus] = None
) -> DatabaseService:
    """Open the local configuration database."""
    return DatabaseService(db_path=config.database_path, change_bus=change_bus)


def open_cloud_store(config: Config) -> FileKeyValueStore:
    """Open the shared cloud key-value document."""
    return FileKeyValueStore(config.cloud_store_path)


def open_backup_manager(config: Config) -> SettingsBackupManager:
    """Backups of the Claude settings file."""
    return SettingsBackupManager(
        config.claude_settings_path, max_backups=config.max_settings_backups
    )


def build_switcher(config: Config, repository: DatabaseService) -> VendorSwitcher:
    """Create a vendor switcher writing the configured settings file."""
    return VendorSwitcher(
        repository,
        ClaudeSettingsWriter(config.claude_settings_path),
        backup=open_backup_manager(config),
    )


def build_controller(
    config: Config,
    repository: DatabaseService,
    kv_store: FileKeyValueStore,
    scheduler: Scheduler,
    reachability: Optional[ReachabilityTracker] = None,
    change_bus: Optional[ChangeNotificationBus] = None,
) -> SyncController:
    """Create a sync controller using configured timings."""
    return SyncController(
        repository,
        kv_store,
        scheduler,
        reachability=reachability,
        change_bus=change_bus,
        debounce_seconds=config.debounce_seconds,
        success_decay_seconds=config.success_decay_seconds,
        max_retry_attempts=config.max_retry_attempts,
    )


def run_to_completion(
    controller: SyncController, scheduler: ManualScheduler, future: "Future[Any]"
) -> Any:
    """Drive a one-shot controller until the operation and its retries finish.

    Backoff waits are real: the process sleeps before advancing the clock.

    Returns:
        The operation's result
    """
    scheduler.run_pending()
    while controller.retry_pending:
        delay = controller.retry.delay or 0.0
        logger.info("Retrying in %.0f seconds...", delay)
        time.sleep(delay)
        scheduler.advance(delay)
    return future.result()


def parse_env_pairs(pairs: Iterable[str]) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` arguments.

    Raises:
        click.BadParameter: If an argument has no ``=`` or an empty key
    """
    env: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{pair}'")
        env[key] = value
    return env
