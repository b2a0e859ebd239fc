"""Click CLI entry point for gcs-auth."""

from __future__ import annotations

import asyncio
import sys

import click

from gcs_auth import __version__
from gcs_auth.errors import AuthError


async def _fetch(client) -> str:
    async with client:
        return await client.token()


def _prepare(config_path: str | None, project: str):
    """Configure logging and build a client from the environment."""
    from gcs_auth.client import Client
    from gcs_auth.config import load_config
    from gcs_auth.logging_config import setup_logging

    if config_path:
        app_config = load_config(config_path)
        setup_logging(app_config.logging)
        return Client.from_env(project, config=app_config.auth)
    setup_logging()
    return Client.from_env(project)


@click.group()
@click.version_option(version=__version__)
def cli():
    """gcs-auth: bearer tokens for Google Cloud Storage."""


@cli.command()
@click.option("-c", "--config", "config_path", default=None, type=click.Path(exists=True), help="Config YAML")
@click.option("--project", envvar="GOOGLE_CLOUD_PROJECT", default="", help="Project the client is bound to")
def token(config_path: str | None, project: str):
    """Print an authorization header value for the configured credentials."""
    try:
        client = _prepare(config_path, project)
        value = asyncio.run(_fetch(client))
    except (AuthError, ValueError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(value)


@cli.command()
@click.option("-c", "--config", "config_path", default=None, type=click.Path(exists=True), help="Config YAML")
@click.option("--project", envvar="GOOGLE_CLOUD_PROJECT", default="", help="Project the client is bound to")
def info(config_path: str | None, project: str):
    """Show the selected token strategy and the lifetime of a fresh token."""
    from gcs_auth.display import display_token_info

    try:
        client = _prepare(config_path, project)
        asyncio.run(_fetch(client))
        display_token_info(client)
    except (AuthError, ValueError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
