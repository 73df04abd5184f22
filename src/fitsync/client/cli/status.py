"""Status command for the fitsync CLI.

Commands:
- status: Show pending and synced record counts
"""

from __future__ import annotations

import click

from fitsync.client.cli.config import get_local_db_path, load_config


@click.command()
def status() -> None:
    """Show how many local records of each kind await upload."""
    from fitsync.client.store import LocalStore
    from fitsync.core.types import SyncStatus

    config = load_config()
    click.echo(f"Server: {config.get('server_url') or '(not configured)'}")

    db_path = get_local_db_path()
    if not db_path.exists():
        click.echo("No local data yet.")
        return

    total_pending = 0
    with LocalStore(db_path) as store:
        click.echo(f"{'Kind':<20} {'Pending':>8} {'Synced':>8}")
        for kind in store.kinds:
            counts = store.count_by_status(kind)
            total_pending += counts[SyncStatus.PENDING]
            click.echo(
                f"{kind:<20} {counts[SyncStatus.PENDING]:>8} {counts[SyncStatus.SYNCED]:>8}"
            )

    if total_pending:
        click.echo(f"\n{total_pending} record(s) waiting for upload.")
    else:
        click.echo("\nEverything is up to date.")
