"""Server administration commands for the fitsync CLI.

Commands:
- server run: Start the document server
- server create-token: Create an API token for a client
"""

from __future__ import annotations

import os
from pathlib import Path

import click


def _resolve_db_path(db_path: str | None) -> Path:
    return Path(db_path or os.environ.get("FITSYNC_DB_PATH", "fitsync.db"))


@click.group()
def server() -> None:
    """Server management commands.

    These commands are for administrators running the fitsync document server.
    """


@server.command("run")
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", type=int, default=8000, show_default=True, help="Bind port.")
@click.option(
    "--db",
    "db_path",
    type=click.Path(),
    default=None,
    help="Path to database file (default: FITSYNC_DB_PATH or ./fitsync.db).",
)
def run_cmd(host: str, port: int, db_path: str | None) -> None:
    """Run the document server."""
    import uvicorn

    from fitsync.server.app import LOG_PATH, create_app, setup_logging
    from fitsync.server.database import Database

    setup_logging(LOG_PATH)
    app = create_app(Database(_resolve_db_path(db_path)))
    uvicorn.run(app, host=host, port=port)


@server.command("create-token")
@click.argument("name")
@click.option(
    "--db",
    "db_path",
    type=click.Path(),
    default=None,
    help="Path to database file (default: FITSYNC_DB_PATH or ./fitsync.db).",
)
def create_token_cmd(name: str, db_path: str | None) -> None:
    """Create an API token for the client called NAME.

    The raw token is printed once; only its hash is stored.
    """
    from fitsync.server.database import Database

    db = Database(_resolve_db_path(db_path))
    try:
        raw_token, token = db.create_token(name)
    finally:
        db.close()

    click.echo(f"Token #{token.id} for '{name}':")
    click.echo(raw_token)
