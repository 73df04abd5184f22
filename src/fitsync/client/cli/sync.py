"""Sync command for the fitsync CLI.

Commands:
- sync: Synchronize local records with the server
"""

from __future__ import annotations

import logging
import sys
import time
from typing import TYPE_CHECKING, Any

import click

from fitsync.client.cli.config import (
    get_local_db_path,
    is_configured,
    load_config,
    remote_config_from,
    sync_settings_from,
)

if TYPE_CHECKING:
    from fitsync.client.remote import HTTPDocumentStore
    from fitsync.client.sync.types import SyncResult


def open_remote(config: dict[str, Any]) -> HTTPDocumentStore:
    """Create the remote document store client for a loaded config."""
    from fitsync.client.remote import HTTPDocumentStore

    return HTTPDocumentStore(remote_config_from(config))


_HANDLER_NAME = "fitsync-cli"


def _configure_logging(verbose: bool) -> None:
    fitsync_logger = logging.getLogger("fitsync")
    for existing in list(fitsync_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            fitsync_logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    fitsync_logger.addHandler(handler)
    fitsync_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _report(result: SyncResult) -> None:
    for doc_id in result.uploaded:
        click.echo(f"  ↑ {doc_id}")
    for doc_id in result.downloaded:
        click.echo(f"  ↓ {doc_id}")
    for doc_id in result.deleted:
        click.echo(f"  ✗ {doc_id}")
    if result.skipped:
        click.echo(click.style("\nMalformed remote documents:", fg="yellow"))
        for doc_id in result.skipped:
            click.echo(f"  ! {doc_id}")
    if result.errors:
        click.echo(click.style("\nErrors:", fg="red"))
        for error in result.errors:
            click.echo(f"  ✗ {error}")
    click.echo(result.summary())


@click.command()
@click.option("--watch", "-w", is_flag=True, help="Keep running and sync periodically.")
@click.option(
    "--interval",
    type=float,
    default=None,
    help="Seconds between passes in watch mode (default: configured interval).",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def sync(watch: bool, interval: float | None, verbose: bool) -> None:
    """Synchronize local records with the server.

    Uploads pending records, reconciles remote documents (newest wins), and
    exits with status 1 if any record failed. Use --watch to keep syncing.
    """
    from fitsync.client.connectivity import ConnectivityMonitor
    from fitsync.client.store import LocalStore
    from fitsync.client.sync import CloudSyncEngine, PeriodicSyncScheduler

    config = load_config()
    if not is_configured(config):
        click.echo("Error: No server configured. Run 'fitsync configure' first.", err=True)
        sys.exit(1)

    _configure_logging(verbose)

    settings = sync_settings_from(config)
    if interval is not None:
        if interval <= 0:
            click.echo("Error: --interval must be positive.", err=True)
            sys.exit(1)
        settings.interval_seconds = interval

    store = LocalStore(get_local_db_path())
    remote = open_remote(config)
    engine = CloudSyncEngine(
        store,
        remote,
        ConnectivityMonitor(remote.health_check),
        settings=settings,
        auto_sync=False,
    )

    click.echo(f"Syncing with {remote.config.server_url}...")
    try:
        result = engine.run_sync_pass()
        if result is not None:
            _report(result)

        if watch:
            scheduler = PeriodicSyncScheduler(engine, settings.interval_seconds)
            scheduler.start()
            click.echo(
                f"\nSyncing every {settings.interval_seconds:.0f}s... (Ctrl+C to stop)\n"
            )
            try:
                while True:
                    time.sleep(1)
            except KeyboardInterrupt:
                click.echo("\nStopping...")
            finally:
                scheduler.stop()
    finally:
        remote.close()
        store.close()

    if not watch and result is not None and result.errors:
        sys.exit(1)
