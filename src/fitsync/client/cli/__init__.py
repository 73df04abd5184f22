"""Command-line interface for fitsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Point this client at a document server
- sync: Synchronize local records with the server
- status: Show pending and synced record counts
- server: Server administration commands
"""

from __future__ import annotations

import click

from fitsync.client.cli.config import (
    get_config_dir,
    get_config_file,
    get_local_db_path,
    load_config,
    save_config,
)
from fitsync.client.cli.configure import configure
from fitsync.client.cli.server import server
from fitsync.client.cli.status import status
from fitsync.client.cli.sync import sync


@click.group()
@click.version_option(package_name="fitsync")
def cli() -> None:
    """fitsync - offline-first sync for Fitter workout data."""


cli.add_command(configure)
cli.add_command(sync)
cli.add_command(status)
cli.add_command(server)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "get_config_dir",
    "get_config_file",
    "get_local_db_path",
    "load_config",
    "main",
    "save_config",
]
