"""Claude settings backup commands."""

import logging
from typing import Optional

import click
from rich.console import Console

from ...config import Config
from ...core.settings import BackupError
from ..display import display_backups
from .common import open_backup_manager

console = Console()
logger = logging.getLogger(__name__)


@click.group("backups")
def backups() -> None:
    """Manage backups of Claude's settings.json.

    A backup is taken before every `ccsync vendors use`.
    """
    pass


@backups.command(name="list")
@click.pass_obj
def list_backups(config: Config) -> None:
    """List backups, newest first."""
    display_backups(open_backup_manager(config).get_all_backups())


@backups.command(name="create")
@click.pass_obj
def create_backup(config: Config) -> None:
    """Back up the current settings file now."""
    try:
        backup_path = open_backup_manager(config).backup_current_settings()
    except BackupError as e:
        raise click.ClickException(str(e))

    if backup_path is None:
        console.print(f"[yellow]No settings file at {config.claude_settings_path}[/yellow]")
    else:
        console.print(f"[green]✓ Backed up to {backup_path.name}[/green]")


@backups.command(name="restore")
@click.argument("name")
@click.pass_obj
def restore_backup(config: Config, name: str) -> None:
    """Restore a backup by file name or timestamp.

    The settings being replaced are backed up first.

    Examples:
        ccsync backups restore 20240101-120000
    """
    manager = open_backup_manager(config)
    try:
        manager.restore_from_backup(manager.resolve(name))
    except BackupError as e:
        raise click.ClickException(str(e))

    console.print(f"[green]✓ Restored {name}[/green]")


@backups.command(name="delete")
@click.argument("name", required=False)
@click.option("--all", "delete_all", is_flag=True, help="Delete every backup")
@click.pass_obj
def delete_backup(config: Config, name: Optional[str], delete_all: bool) -> None:
    """Delete one backup, or all of them with --all."""
    if bool(name) == delete_all:
        raise click.UsageError("Give a backup name or --all")

    manager = open_backup_manager(config)
    try:
        if delete_all:
            count = manager.delete_all_backups()
            console.print(f"[green]✓ Deleted {count} backup(s)[/green]")
            return
        manager.delete_backup(manager.resolve(name))
    except BackupError as e:
        raise click.ClickException(str(e))

    console.print(f"[green]✓ Deleted {name}[/green]")
