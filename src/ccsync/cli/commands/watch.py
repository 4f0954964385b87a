"""Long-running sync process."""

import logging
import threading
from typing import List, Optional

import click
from rich.console import Console

from ...config import Config
from ...core.cloud import FileKeyValueStore
from ...core.network import ReachabilityTracker, SocketReachabilityMonitor
from ...core.store import ChangeNotificationBus
from ...core.sync import SyncController, SyncStatus, ThreadScheduler
from ...core.watcher import create_observer, start_watching, stop_watching
from ...database import DatabaseService
from ...utils.logging_config import set_log_level
from ..display import format_status
from .common import build_controller, open_cloud_store, open_repository

console = Console()
logger = logging.getLogger(__name__)


class ChangeMonitor:
    """Applies changes made by other processes.

    Local edits show up as a bumped database revision and are published on
    the change bus. Cloud edits are picked up by the key-value store, which
    notifies its own listeners. The sync switch flipped by another process is
    applied to the controller.
    """

    def __init__(
        self,
        repository: DatabaseService,
        kv_store: FileKeyValueStore,
        change_bus: ChangeNotificationBus,
        controller: Optional[SyncController] = None,
    ):
        self.repository = repository
        self.kv_store = kv_store
        self.change_bus = change_bus
        self.controller = controller
        self._lock = threading.Lock()
        self._revision = repository.get_revision()

    def check_all(self) -> bool:
        """Check both sides once.

        Returns:
            True if anything changed
        """
        local_changed = self.check_local()
        cloud_changed = self.check_cloud()
        return local_changed or cloud_changed

    def check_local(self) -> bool:
        """Apply the sync switch and publish a new database revision."""
        with self._lock:
            self._check_switch()
            return self._check_revision()

    def check_cloud(self) -> bool:
        """Reload the cloud document if another device rewrote it."""
        remote_keys: List[str] = self.kv_store.check_for_external_changes()
        return bool(remote_keys)

    def _check_switch(self) -> None:
        if self.controller is None:
            return
        manifest = self.repository.load_sync_manifest()
        if manifest is not None and manifest.enabled != self.controller.enabled:
            logger.info(
                "Sync switched %s by another process",
                "on" if manifest.enabled else "off",
            )
            self.controller.toggle_sync(manifest.enabled)

    def _check_revision(self) -> bool:
        revision = self.repository.get_revision()
        if revision == self._revision:
            return False
        logger.debug("Local revision %d -> %d", self._revision, revision)
        self._revision = revision
        self.change_bus.publish()
        return True


@click.command("watch")
@click.option(
    "--polling/--no-polling",
    default=None,
    help="Poll files instead of using OS notifications (default: CCSYNC_WATCH_POLLING)",
)
@click.option(
    "--interval",
    type=float,
    default=None,
    help="Seconds between polls with --polling (default: CCSYNC_POLL_INTERVAL)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for this process (default: the global --log-level)",
)
@click.pass_obj
def watch_command(
    config: Config,
    polling: Optional[bool],
    interval: Optional[float],
    log_level: Optional[str],
) -> None:
    """Keep local vendors and the cloud in sync until interrupted.

    Local edits are pushed after a short quiet period, cloud edits are pulled
    as they appear, and pushes resume when the network comes back.
    """
    if log_level:
        set_log_level(log_level)

    use_polling = config.watch_polling if polling is None else polling
    poll_interval = interval if interval is not None else config.poll_interval

    change_bus = ChangeNotificationBus()
    repository = open_repository(config, change_bus=change_bus)
    kv_store = open_cloud_store(config)
    tracker = ReachabilityTracker()
    scheduler = ThreadScheduler()
    scheduler.start()

    controller = build_controller(
        config, repository, kv_store, scheduler, reachability=tracker, change_bus=change_bus
    )
    controller.subscribe(_print_status)

    probe = None
    if config.probe_host:
        probe = SocketReachabilityMonitor(
            tracker, config.probe_host, config.probe_port, config.probe_interval
        )
        probe.start()

    changes = ChangeMonitor(repository, kv_store, change_bus, controller)
    observer = start_watching(
        create_observer(polling=use_polling, timeout=poll_interval),
        config.database_path,
        config.cloud_store_path,
        on_local_change=changes.check_local,
        on_cloud_change=changes.check_cloud,
    )

    state = "enabled" if controller.enabled else "disabled (waiting for `ccsync sync enable`)"
    console.print(f"\n[bold cyan]👀 Watching for changes[/bold cyan] - sync {state}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    # Catch up on anything written before the observer started
    changes.check_all()
    if controller.enabled:
        controller.request_pull()

    try:
        while observer.is_alive():
            observer.join(1)
        logger.error("File watcher stopped unexpectedly")
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping...[/yellow]")
    finally:
        stop_watching(observer)
        if probe is not None:
            probe.stop()
        controller.close()
        scheduler.stop()
        repository.close()


def _print_status(status: SyncStatus) -> None:
    console.print(format_status(status))
