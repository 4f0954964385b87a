"""Display formatters and UI helpers for CLI."""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from rich.console import Console
from rich.table import Table

from ...core.store.importer import ImportResult
from ...core.sync import Conflict, DetectionResult, SyncState, SyncStatus
from ...models import SyncManifest, Vendor

console = Console()
logger = logging.getLogger(__name__)

SECRET_MARKERS = ("KEY", "TOKEN", "SECRET", "PASSWORD")

STATUS_STYLES = {
    SyncState.IDLE: ("dim", "⏸"),
    SyncState.SYNCING: ("cyan", "🔄"),
    SyncState.SUCCESS: ("green", "✓"),
    SyncState.OFFLINE: ("yellow", "⚠️"),
    SyncState.ERROR: ("red", "✗"),
}


def mask_value(key: str, value: str) -> str:
    """Hide most of a secret-looking env value.

    Args:
        key: Env key name
        value: Env value

    Returns:
        Value safe to print
    """
    if not any(marker in key.upper() for marker in SECRET_MARKERS):
        return value
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}…{value[-4:]}"


def format_status(status: SyncStatus) -> str:
    """Rich markup for a sync status."""
    style, icon = STATUS_STYLES[status.state]
    return f"[{style}]{icon} {status}[/{style}]"


def display_vendors(
    vendors: List[Vendor],
    current_id: Optional[str],
    favorites: Set[str],
    synced_ids: Iterable[str],
    show_env: bool = False,
    presets: Optional[Set[str]] = None,
) -> None:
    """Display local vendors as a table.

    Args:
        vendors: Vendors in display order
        current_id: Id of the current vendor
        favorites: Favorite vendor ids
        synced_ids: Ids listed in the sync manifest
        show_env: Also list env keys with masked values
        presets: Vendor ids that came from presets, tagged in the name column
    """
    if not vendors:
        console.print("[yellow]No vendors configured[/yellow]")
        return

    synced = set(synced_ids)
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("", width=2)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Env", justify="right" if not show_env else "left")
    table.add_column("Synced", justify="center")

    for vendor in vendors:
        marker = "→" if vendor.id == current_id else ""
        name = vendor.display_name
        if vendor.id in favorites:
            name = f"★ {name}"
        if presets and vendor.id in presets:
            name = f"{name} [dim](preset)[/dim]"
        if show_env:
            env = "\n".join(
                f"{k}={mask_value(k, v)}" for k, v in sorted(vendor.env.items())
            )
        else:
            env = str(len(vendor.env))
        table.add_row(marker, vendor.id, name, env, "✓" if vendor.id in synced else "")

    console.print(table)


def display_sync_overview(
    manifest: SyncManifest,
    vendors: List[Vendor],
    detection: DetectionResult,
    statistics: Optional[Dict[str, Any]] = None,
) -> None:
    """Display sync switch and per-vendor comparison with the cloud.

    Args:
        manifest: Current sync manifest
        vendors: Local vendors
        detection: Result of comparing synced vendors with the cloud
        statistics: Local database statistics, shown above the table
    """
    if statistics:
        console.print(f"\n[bold]Database:[/bold] {statistics['database_path']}")
        console.print(
            f"[bold]Vendors:[/bold] {statistics['vendors']} "
            f"({statistics['favorites']} favorite) [dim]revision {statistics['revision']}[/dim]"
        )
    enabled = "[green]enabled[/green]" if manifest.enabled else "[yellow]disabled[/yellow]"
    console.print(f"\n[bold]Sync:[/bold] {enabled}")
    console.print(f"[bold]Synced vendors:[/bold] {len(manifest.synced_vendor_ids)}\n")

    conflicted = {c.vendor_id for c in detection.conflicts}
    unchanged = set(detection.unchanged)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Cloud")

    for vendor in vendors:
        if vendor.id in conflicted:
            state = "[red]differs[/red]"
        elif vendor.id in unchanged:
            state = "[green]in sync[/green]"
        else:
            state = "[dim]not in cloud[/dim]"
        table.add_row(vendor.id, vendor.display_name, state)

    for vendor in detection.imports:
        table.add_row(vendor.id, vendor.display_name, "[yellow]cloud only[/yellow]")

    console.print(table)


def display_conflicts(conflicts: List[Conflict]) -> None:
    """Display pending conflicts."""
    if not conflicts:
        console.print("[green]✓ No conflicts[/green]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Vendor", style="cyan")
    table.add_column("Local name")
    table.add_column("Cloud name")
    table.add_column("Changed env keys", style="yellow")

    for conflict in conflicts:
        table.add_row(
            conflict.vendor_id,
            conflict.local.display_name,
            conflict.remote.display_name,
            ", ".join(conflict.changed_keys()) or "-",
        )

    console.print(table)
    console.print(
        f"\n[yellow]{len(conflicts)} conflict(s).[/yellow] "
        "Resolve with: ccsync conflicts resolve <vendor> --keep local|remote"
    )


def display_conflict_detail(conflict: Conflict) -> None:
    """Display both versions of one conflicted vendor side by side."""
    table = Table(
        title=f"Conflict: {conflict.vendor_id}",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Field", style="cyan")
    table.add_column("Local")
    table.add_column("Cloud")

    if conflict.local.name != conflict.remote.name:
        table.add_row("name", conflict.local.name, conflict.remote.name)

    for key in conflict.changed_keys():
        local = conflict.local.env.get(key)
        remote = conflict.remote.env.get(key)
        table.add_row(
            key,
            mask_value(key, local) if local is not None else "[dim]-[/dim]",
            mask_value(key, remote) if remote is not None else "[dim]-[/dim]",
        )

    console.print(table)


def display_import_result(result: ImportResult) -> None:
    """Display the outcome of a configuration import."""
    table = Table(show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Added", str(len(result.added)))
    table.add_row("Updated", str(len(result.updated)))
    table.add_row("Skipped (already present)", str(len(result.skipped)))

    console.print(table)


def display_backups(backups: List[Path]) -> None:
    """Display settings backups, newest first."""
    if not backups:
        console.print("[yellow]No backups[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Backup", style="cyan")
    table.add_column("Size", justify="right")

    for backup_path in backups:
        table.add_row(backup_path.name, f"{backup_path.stat().st_size} B")

    console.print(table)
