"""DemoShare CLI — run the API server and local maintenance tasks.

Usage:
    demoshare serve                       # Run the API with uvicorn
    demoshare serve --reload              # ... restarting on code changes
    demoshare init-db                     # Create all tables (dev/test databases)
    demoshare dev-token <subject>         # Mint a bearer token for local testing

Production schemas are managed with Alembic (``alembic upgrade head``);
init-db is for throwaway databases.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import click
import uvicorn

from demoshare import __version__
from demoshare.config import settings


@click.group()
@click.version_option(version=__version__, prog_name="demoshare")
def main():
    """DemoShare — share unreleased music and collect feedback."""


# ---------------------------------------------------------------------------
# demoshare serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: DEMOSHARE_HOST)")
@click.option("--port", "-p", type=int, default=None, help="Port (default: DEMOSHARE_PORT)")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the HTTP API."""
    uvicorn.run(
        "demoshare.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="debug" if settings.debug else "info",
    )


# ---------------------------------------------------------------------------
# demoshare init-db
# ---------------------------------------------------------------------------


@main.command("init-db")
def init_db():
    """Create every table that does not exist yet."""
    from demoshare.db.engine import create_all, engine

    async def _init():
        await create_all()
        await engine.dispose()

    asyncio.run(_init())
    click.secho("Database tables created.", fg="green")


# ---------------------------------------------------------------------------
# demoshare dev-token
# ---------------------------------------------------------------------------


@main.command("dev-token")
@click.argument("subject")
@click.option("--minutes", "-m", type=int, default=60, help="Lifetime in minutes")
def dev_token(subject: str, minutes: int):
    """Print a bearer token for SUBJECT signed with the local secret.

    Only works in development: elsewhere tokens come from the identity
    provider.
    """
    if settings.environment != "development":
        click.secho("Error: dev-token is only available in development", fg="red", err=True)
        sys.exit(1)

    from demoshare.auth.jwt import create_token

    click.echo(create_token(subject, expires_minutes=minutes))


if __name__ == "__main__":
    main()
