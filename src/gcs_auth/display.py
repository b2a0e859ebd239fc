"""Rich display utilities for console output."""

from __future__ import annotations

from datetime import datetime

from rich.console import Console
from rich.table import Table

from gcs_auth.auth import TokenManager
from gcs_auth.client import Client

console = Console()


def display_token_info(client: Client, now: datetime | None = None) -> None:
    """Display which strategy a client uses and the state of its cached token.

    The token value itself is never shown.
    """
    provider = client.provider
    if now is None:
        now = provider.now()

    table = Table(show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Project", client.project_name)
    table.add_row("Strategy", provider.kind)
    table.add_row("Credential source", client.credential_source)
    if isinstance(provider, TokenManager):
        table.add_row("Service account", provider.creds.client_email)
        table.add_row("Key ID", provider.creds.private_key_id)
    table.add_row("Scopes", "\n".join(client.scopes))

    token = provider.current_token
    if token is None:
        table.add_row("Token", "[yellow]not yet obtained[/yellow]")
    else:
        remaining = token.expires_in(now)
        style = "green" if token.is_valid(now) else "red"
        table.add_row("Expires", token.expiry.isoformat())
        table.add_row("Expires in", f"[{style}]{remaining:,d}s[/{style}]")

    console.print()
    console.print(table)
    console.print()
