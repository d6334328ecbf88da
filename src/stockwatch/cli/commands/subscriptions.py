"""
Subscription management commands.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Manage push subscriptions",
    no_args_is_help=True,
)


def _format_filter(values: list[str]) -> str:
    return escape(", ".join(values)) if values else "[dim]any[/dim]"


@app.command("add")
def add_subscription(
    token: str = typer.Argument(..., help="Expo push token"),
    county: Optional[list[str]] = typer.Option(
        None,
        "--county",
        "-c",
        help="County filter (repeatable)",
    ),
    species: Optional[list[str]] = typer.Option(
        None,
        "--species",
        "-s",
        help="Species filter (repeatable)",
    ),
    water: Optional[list[str]] = typer.Option(
        None,
        "--water",
        "-w",
        help="Water body filter (repeatable)",
    ),
) -> None:
    """Add a subscription or replace an existing token's filters.

    Omitted filters match everything.

    Examples:
        stockwatch subscriptions add ExponentPushToken[abc] -c WASATCH -s RAINBOW
    """
    from stockwatch.core.config.loader import load_app_config
    from stockwatch.persistence.store import open_store

    if not token.strip():
        err_console.print("[red]Push token is required[/red]")
        raise typer.Exit(1)

    config = load_app_config()

    async def _upsert() -> None:
        async with open_store(config.database) as store:
            await store.upsert_subscription(
                token,
                counties=county or [],
                species=species or [],
                waters=water or [],
            )

    asyncio.run(_upsert())
    console.print(f"[green]OK[/green] Subscription saved for [cyan]{escape(token.strip())}[/cyan]")


@app.command("list")
def list_subscriptions() -> None:
    """List all subscriptions."""
    from stockwatch.core.config.loader import load_app_config
    from stockwatch.persistence.store import open_store

    config = load_app_config()

    async def _load():
        async with open_store(config.database) as store:
            return await store.list_subscriptions()

    subs = asyncio.run(_load())

    if not subs:
        console.print("[dim]No subscriptions yet.[/dim]")
        return

    table = Table(title="Subscriptions", show_header=True, header_style="bold magenta")
    table.add_column("Token", style="cyan", no_wrap=True)
    table.add_column("Counties")
    table.add_column("Species")
    table.add_column("Waters")

    for sub in subs:
        table.add_row(
            escape(sub.token),
            _format_filter(sub.counties),
            _format_filter(sub.species),
            _format_filter(sub.waters),
        )

    console.print(table)


@app.command("remove")
def remove_subscription(
    token: str = typer.Argument(..., help="Expo push token"),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Skip confirmation",
    ),
) -> None:
    """Remove a subscription."""
    from stockwatch.core.config.loader import load_app_config
    from stockwatch.persistence.store import open_store

    if not force:
        if not typer.confirm(f"Remove subscription '{token}'?", default=False):
            raise typer.Abort()

    config = load_app_config()

    async def _remove() -> bool:
        async with open_store(config.database) as store:
            return await store.remove_subscription(token)

    if not asyncio.run(_remove()):
        err_console.print(f"[red]Subscription not found:[/red] {escape(token)}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] Removed subscription [cyan]{escape(token)}[/cyan]")


@app.command("test-push")
def test_push(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Log the test messages instead of sending them",
    ),
) -> None:
    """Send a test notification to every real device token."""
    from stockwatch.core.backends.base import PushError
    from stockwatch.core.config.loader import load_app_config
    from stockwatch.core.notify.dispatcher import send_test_push
    from stockwatch.core.orchestrator.runner import create_transport
    from stockwatch.persistence.store import open_store

    config = load_app_config()

    async def _send():
        async with open_store(config.database) as store:
            subs = await store.list_subscriptions()
        async with create_transport(config, dry_run=dry_run) as transport:
            return await send_test_push(subs, transport)

    try:
        result = asyncio.run(_send())
    except PushError as e:
        err_console.print(f"[red]Push failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if result.sent == 0:
        err_console.print("[yellow]No real push tokens found.[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] Sent {result.sent} test message(s)")
