"""Configure command for the fitsync CLI.

Commands:
- configure: Point this client at a document server
"""

from __future__ import annotations

import sys

import click

from fitsync.client.cli.config import get_config_file, load_config, save_config


@click.command()
@click.option(
    "--server-url",
    required=True,
    help="Server URL (e.g., http://localhost:8000).",
)
@click.option(
    "--token",
    required=True,
    help="API token created with 'fitsync server create-token'.",
)
@click.option(
    "--interval",
    type=float,
    default=None,
    help="Seconds between passes in 'sync --watch' mode.",
)
@click.option(
    "--check/--no-check",
    default=True,
    show_default=True,
    help="Verify the server is reachable and accepts the token before saving.",
)
def configure(server_url: str, token: str, interval: float | None, check: bool) -> None:
    """Configure the server this client syncs with."""
    from fitsync.client.remote import AuthenticationError, HTTPDocumentStore
    from fitsync.core.config import RemoteConfig

    if interval is not None and interval <= 0:
        click.echo("Error: --interval must be positive.", err=True)
        sys.exit(1)

    remote_config = RemoteConfig(server_url=server_url, token=token)
    if not remote_config.is_secure:
        click.echo("Warning: server URL is not HTTPS; the token is sent in clear.", err=True)

    if check:
        with HTTPDocumentStore(remote_config) as remote:
            if not remote.health_check():
                click.echo(
                    f"Warning: server {remote_config.server_url} is not reachable right now.",
                    err=True,
                )
            else:
                try:
                    remote.list_collections()
                except AuthenticationError:
                    click.echo("Error: the server rejected this token.", err=True)
                    sys.exit(1)

    config = load_config()
    config["server_url"] = remote_config.server_url
    config["auth_token"] = token
    if interval is not None:
        config["sync_interval"] = interval
    save_config(config)

    click.echo(f"Configuration saved to {get_config_file()}")
