"""Vendor management commands."""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console

from ...config import Config
from ...core.settings import SettingsError
from ...core.store import (
    ConfigFileError,
    ConfigurationError,
    import_configuration,
    load_config_file,
)
from ...core.store.importer import DEFAULT_CONFIG_FILE
from ...models import Vendor
from ..display import display_import_result, display_vendors
from .common import build_switcher, open_repository, parse_env_pairs

console = Console()
logger = logging.getLogger(__name__)


@click.group("vendors")
def vendors() -> None:
    """Manage vendor profiles stored on this device.

    Changes are pushed to the cloud by `ccsync watch` or `ccsync sync push`.
    """
    pass


@vendors.command(name="list")
@click.option("--env", "show_env", is_flag=True, help="Show env values (secrets masked)")
@click.pass_obj
def list_vendors(config: Config, show_env: bool) -> None:
    """List vendors; the current one is marked with an arrow."""
    repository = open_repository(config)
    try:
        current = repository.get_current_vendor()
        manifest = repository.load_sync_manifest()
        display_vendors(
            repository.get_all_vendors(),
            current.id if current else None,
            repository.get_favorites(),
            manifest.synced_vendor_ids if manifest else [],
            show_env=show_env,
            presets=repository.get_presets(),
        )
    finally:
        repository.close()


@vendors.command(name="add")
@click.argument("vendor_id")
@click.option("--name", default="", help="Display name")
@click.option(
    "--env", "env_pairs", multiple=True, metavar="KEY=VALUE", help="Env entry (repeatable)"
)
@click.pass_obj
def add_vendor(
    config: Config, vendor_id: str, name: str, env_pairs: Tuple[str, ...]
) -> None:
    """Add a new vendor.

    Examples:
        ccsync vendors add anthropic --name Anthropic --env ANTHROPIC_API_KEY=sk-...
    """
    env = parse_env_pairs(env_pairs)
    repository = open_repository(config)
    try:
        repository.add_vendor(Vendor(id=vendor_id, name=name, env=env))
    except (ConfigurationError, ValueError) as e:
        raise click.ClickException(str(e))
    finally:
        repository.close()

    console.print(f"[green]✓ Added vendor {vendor_id}[/green]")


@vendors.command(name="set")
@click.argument("vendor_id")
@click.argument("env_pairs", nargs=-1, metavar="[KEY=VALUE]...")
@click.option("--name", default=None, help="New display name")
@click.option("--unset", "unset_keys", multiple=True, metavar="KEY", help="Remove env key")
@click.pass_obj
def set_vendor(
    config: Config,
    vendor_id: str,
    env_pairs: Tuple[str, ...],
    name: Optional[str],
    unset_keys: Tuple[str, ...],
) -> None:
    """Change a vendor's name or env entries."""
    updates = parse_env_pairs(env_pairs)
    if not updates and not unset_keys and name is None:
        raise click.UsageError("Nothing to change")

    repository = open_repository(config)
    try:
        vendor = repository.get_vendor(vendor_id)
        if vendor is None:
            raise click.ClickException(f"Vendor not found: {vendor_id}")

        env = {k: v for k, v in vendor.env.items() if k not in unset_keys}
        env.update(updates)
        changes = {"env": env}
        if name is not None:
            changes["name"] = name

        repository.update_vendor(vendor.model_copy(update=changes))
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    finally:
        repository.close()

    console.print(f"[green]✓ Updated vendor {vendor_id}[/green]")


@vendors.command(name="remove")
@click.argument("vendor_id")
@click.pass_obj
def remove_vendor(config: Config, vendor_id: str) -> None:
    """Remove a vendor from this device.

    The cloud copy is left in place.
    """
    repository = open_repository(config)
    try:
        repository.remove_vendor(vendor_id)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    finally:
        repository.close()

    console.print(f"[green]✓ Removed vendor {vendor_id}[/green]")


@vendors.command(name="use")
@click.argument("vendor_id")
@click.pass_obj
def use_vendor(config: Config, vendor_id: str) -> None:
    """Switch Claude to a vendor.

    The vendor's env replaces the `env` object in Claude's settings.json
    (other keys are kept) after the previous file is backed up.
    """
    repository = open_repository(config)
    try:
        vendor = build_switcher(config, repository).switch_to_vendor(vendor_id)
    except (ConfigurationError, SettingsError) as e:
        raise click.ClickException(str(e))
    finally:
        repository.close()

    console.print(f"[green]✓ Now using {vendor.display_name}[/green]")
    console.print(f"[dim]Wrote {config.claude_settings_path}[/dim]")


@vendors.command(name="favorite")
@click.argument("vendor_id")
@click.option("--remove", is_flag=True, help="Remove from favorites instead")
@click.pass_obj
def favorite_vendor(config: Config, vendor_id: str, remove: bool) -> None:
    """Add a vendor to (or remove it from) favorites."""
    repository = open_repository(config)
    try:
        if repository.get_vendor(vendor_id) is None:
            raise click.ClickException(f"Vendor not found: {vendor_id}")

        favorites = repository.get_favorites()
        if remove:
            favorites.discard(vendor_id)
        else:
            favorites.add(vendor_id)
        repository.set_favorites(favorites)
    finally:
        repository.close()

    verb = "Unfavorited" if remove else "Favorited"
    console.print(f"[green]✓ {verb} {vendor_id}[/green]")


@vendors.command(name="import")
@click.argument(
    "path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_FILE,
)
@click.option("--overwrite", is_flag=True, help="Replace vendors that already exist")
@click.pass_obj
def import_vendors(config: Config, path: Path, overwrite: bool) -> None:
    """Import vendors from a ccswitch.json file.

    Both the current and the legacy profile layouts are accepted.
    """
    try:
        imported = load_config_file(path)
    except ConfigFileError as e:
        raise click.ClickException(str(e))

    if imported.legacy:
        console.print("[yellow]Legacy configuration layout detected[/yellow]")

    repository = open_repository(config)
    try:
        result = import_configuration(repository, imported, overwrite=overwrite)
    except ConfigurationError as e:
        logger.exception("Import failed")
        raise click.ClickException(str(e))
    finally:
        repository.close()

    console.print(f"\n[bold cyan]📥 Imported from {path}[/bold cyan]")
    display_import_result(result)
