"""
Commands for browsing stored stocking events.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

import orjson
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from stockwatch.core.normalize.canonical import StockingEvent

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Browse stored stocking events",
    no_args_is_help=True,
)


def _print_json(data: object) -> None:
    console.print_json(orjson.dumps(data).decode("utf-8"))


def _events_table(events: Sequence[StockingEvent], title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan")
    table.add_column("Water")
    table.add_column("County")
    table.add_column("Species")
    table.add_column("Qty", justify="right")
    table.add_column("Avg len", justify="right")

    for ev in events:
        table.add_row(
            ev.date_stocked,
            escape(ev.water_name),
            escape(ev.county),
            escape(ev.species),
            f"{ev.quantity:,}" if ev.quantity is not None else "-",
            f'{ev.avg_length:g}"' if ev.avg_length is not None else "-",
        )
    return table


@app.command("recent")
def recent_events(
    limit: int = typer.Option(
        50,
        "--limit",
        "-n",
        help="Number of events to show",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Output JSON",
    ),
) -> None:
    """Show the most recent stocking events."""
    from stockwatch.core.config.loader import load_app_config
    from stockwatch.persistence.store import open_store

    config = load_app_config()

    async def _load():
        async with open_store(config.database) as store:
            return await store.get_recent(limit=limit)

    events = asyncio.run(_load())

    if as_json:
        _print_json([ev.to_dict() for ev in events])
        return

    if not events:
        console.print("[dim]No stocking events stored yet.[/dim]")
        return

    console.print(_events_table(events, f"Recent Stocking Events ({len(events)})"))


@app.command("search")
def search_events(
    county: Optional[str] = typer.Option(None, "--county", "-c", help="Exact county"),
    species: Optional[str] = typer.Option(None, "--species", "-s", help="Exact species"),
    water: Optional[str] = typer.Option(None, "--water", "-w", help="Water name substring"),
    limit: int = typer.Option(50, "--limit", "-n", help="Page size (max 200)"),
    offset: int = typer.Option(0, "--offset", help="Rows to skip"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Search stored events.

    Examples:
        stockwatch events search -c WASATCH -s RAINBOW
        stockwatch events search -w deer --limit 20 --offset 20
    """
    from stockwatch.core.config.loader import load_app_config
    from stockwatch.persistence.store import open_store

    config = load_app_config()

    async def _search():
        async with open_store(config.database) as store:
            return await store.search_events(
                county=county,
                species=species,
                water=water,
                limit=limit,
                offset=offset,
            )

    total, events = asyncio.run(_search())

    if as_json:
        _print_json({
            "total": total,
            "limit": limit,
            "offset": offset,
            "events": [ev.to_dict() for ev in events],
        })
        return

    if not events:
        console.print(f"[dim]No matching events (total {total}).[/dim]")
        return

    console.print(_events_table(events, f"Stocking Events {offset + 1}-{offset + len(events)} of {total}"))


@app.command("meta")
def meta_values(
    field: str = typer.Argument(..., help="county, species or water"),
    county: Optional[str] = typer.Option(
        None,
        "--county",
        "-c",
        help="Restrict waters to one county",
    ),
) -> None:
    """List distinct counties, species or waters."""
    from stockwatch.core.config.loader import load_app_config
    from stockwatch.persistence.repo import DISTINCT_FIELDS
    from stockwatch.persistence.store import open_store

    if field not in DISTINCT_FIELDS:
        err_console.print(f"[red]Unknown field:[/red] {escape(field)}")
        err_console.print(f"[dim]Expected one of: {', '.join(DISTINCT_FIELDS)}[/dim]")
        raise typer.Exit(1)

    config = load_app_config()

    async def _load():
        async with open_store(config.database) as store:
            return await store.distinct_values(field, county=county)

    values = asyncio.run(_load())

    if not values:
        console.print("[dim]No values.[/dim]")
        return

    for value in values:
        console.print(escape(value))
