"""Command-line interface for ccsync.

This is the main entry point that delegates to command modules.
"""

from pathlib import Path
from typing import Any, Optional

import click

from ..config import get_config
from ..utils.logging_config import setup_logging
from .commands import backups, conflicts, sync, vendors, watch_command


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Set logging level",
)
@click.option("--log-file", type=click.Path(), help="Log to file")
@click.pass_context
def cli(ctx: Any, log_level: str, log_file: Optional[str]) -> None:
    """ccsync - sync vendor profiles between devices.

    Vendors are stored locally in SQLite and mirrored to a shared cloud
    folder when sync is enabled.
    """
    setup_logging(log_level=log_level, log_file=Path(log_file) if log_file else None)
    ctx.obj = get_config()


# Register command groups and commands
cli.add_command(vendors)
cli.add_command(sync)
cli.add_command(conflicts)
cli.add_command(backups)
cli.add_command(watch_command)


if __name__ == "__main__":
    cli()
