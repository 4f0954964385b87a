"""Conflict review and resolution commands."""

import logging
from typing import Optional

import click
from rich.console import Console

from ...config import Config
from ...core.sync import ManualScheduler, detect_conflicts
from ..display import display_conflict_detail, display_conflicts, format_status
from .common import build_controller, open_cloud_store, open_repository, run_to_completion

console = Console()
logger = logging.getLogger(__name__)


@click.group("conflicts")
def conflicts() -> None:
    """Review vendors whose local and cloud versions differ."""
    pass


@conflicts.command(name="list")
@click.argument("vendor_id", required=False)
@click.pass_obj
def list_conflicts(config: Config, vendor_id: Optional[str]) -> None:
    """List conflicts, or show both versions of one vendor.

    Nothing is imported or changed.
    """
    repository = open_repository(config)
    try:
        scheduler = ManualScheduler()
        controller = build_controller(config, repository, open_cloud_store(config), scheduler)
        result = detect_conflicts(
            repository.get_all_vendors(),
            controller.manifest.synced_vendor_ids,
            controller.record_store,
        )
        controller.close()
    finally:
        repository.close()

    if vendor_id is None:
        display_conflicts(result.conflicts)
        return

    conflict = next((c for c in result.conflicts if c.vendor_id == vendor_id), None)
    if conflict is None:
        console.print(f"[green]✓ No conflict for {vendor_id}[/green]")
        return
    display_conflict_detail(conflict)


@conflicts.command(name="resolve")
@click.argument("vendor_id")
@click.option(
    "--keep",
    type=click.Choice(["local", "remote"]),
    required=True,
    help="Version to keep",
)
@click.pass_obj
def resolve_conflict(config: Config, vendor_id: str, keep: str) -> None:
    """Resolve one conflict by keeping the local or the cloud version.

    Examples:
        ccsync conflicts resolve anthropic --keep local
        ccsync conflicts resolve anthropic --keep remote
    """
    repository = open_repository(config)
    try:
        scheduler = ManualScheduler()
        controller = build_controller(config, repository, open_cloud_store(config), scheduler)
        run_to_completion(controller, scheduler, controller.request_pull())

        if controller.get_conflict(vendor_id) is None:
            raise click.ClickException(f"No pending conflict for {vendor_id}")

        future = controller.resolve_conflict(vendor_id, keep_local=(keep == "local"))
        resolved = run_to_completion(controller, scheduler, future)
        controller.close()

        if not resolved:
            console.print(format_status(controller.status))
            raise click.ClickException(controller.status.message or "Resolution failed")
    finally:
        repository.close()

    side = "local" if keep == "local" else "cloud"
    console.print(f"[green]✓ Resolved {vendor_id}: kept {side} version[/green]")
