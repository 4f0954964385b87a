"""One-shot sync commands.

Each command builds a sync controller on a manual scheduler, runs one
operation to completion (including backoff retries) and reports the final
status.
"""

import logging

import click
from rich.console import Console

from ...config import Config
from ...core.sync import ManualScheduler, SyncState, SyncStatus, detect_conflicts
from ..display import display_sync_overview, format_status
from .common import build_controller, open_cloud_store, open_repository, run_to_completion

console = Console()
logger = logging.getLogger(__name__)


@click.group("sync")
def sync() -> None:
    """Push, pull and switch cloud sync on or off."""
    pass


@sync.command(name="status")
@click.pass_obj
def sync_status(config: Config) -> None:
    """Show whether sync is on and how local vendors compare with the cloud."""
    repository = open_repository(config)
    try:
        scheduler = ManualScheduler()
        controller = build_controller(config, repository, open_cloud_store(config), scheduler)
        vendors = repository.get_all_vendors()
        detection = detect_conflicts(
            vendors, controller.manifest.synced_vendor_ids, controller.record_store
        )
        display_sync_overview(
            controller.manifest, vendors, detection, repository.get_statistics()
        )
        controller.close()
    finally:
        repository.close()


@sync.command(name="push")
@click.pass_obj
def sync_push(config: Config) -> None:
    """Upload all local vendors to the cloud now."""
    repository = open_repository(config)
    try:
        scheduler = ManualScheduler()
        controller = build_controller(config, repository, open_cloud_store(config), scheduler)
        if not controller.enabled:
            raise click.ClickException("Sync is disabled. Run `ccsync sync enable` first.")

        console.print("\n[bold cyan]🔄 Pushing vendors to cloud...[/bold cyan]")
        run_to_completion(controller, scheduler, controller.sync_now())
        _report(controller.status)
        controller.close()
    finally:
        repository.close()


@sync.command(name="pull")
@click.pass_obj
def sync_pull(config: Config) -> None:
    """Import cloud-only vendors and look for conflicts."""
    repository = open_repository(config)
    try:
        scheduler = ManualScheduler()
        controller = build_controller(config, repository, open_cloud_store(config), scheduler)

        console.print("\n[bold cyan]📥 Pulling from cloud...[/bold cyan]")
        run_to_completion(controller, scheduler, controller.request_pull())

        conflicts = controller.pending_conflicts
        if conflicts:
            console.print(
                f"[yellow]⚠️  {len(conflicts)} conflict(s) found.[/yellow] "
                "Run `ccsync conflicts list` to review."
            )
        _report(controller.status)
        controller.close()
    finally:
        repository.close()


@sync.command(name="enable")
@click.pass_obj
def sync_enable(config: Config) -> None:
    """Turn sync on and push all local vendors."""
    repository = open_repository(config)
    try:
        scheduler = ManualScheduler()
        controller = build_controller(config, repository, open_cloud_store(config), scheduler)
        run_to_completion(controller, scheduler, controller.toggle_sync(True))
        console.print("[green]✓ Sync enabled[/green]")
        _report(controller.status)
        controller.close()
    finally:
        repository.close()


@sync.command(name="disable")
@click.pass_obj
def sync_disable(config: Config) -> None:
    """Turn sync off. Cloud copies are kept."""
    repository = open_repository(config)
    try:
        scheduler = ManualScheduler()
        controller = build_controller(config, repository, open_cloud_store(config), scheduler)
        run_to_completion(controller, scheduler, controller.toggle_sync(False))
        console.print("[yellow]Sync disabled[/yellow]")
        controller.close()
    finally:
        repository.close()


def _report(status: SyncStatus) -> None:
    console.print(format_status(status))
    if status.state == SyncState.ERROR:
        raise click.ClickException(status.message or "Sync failed")
