"""
Poll commands for running stocking report poll cycles.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import orjson
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Run poll cycles",
    no_args_is_help=True,
)


@app.command("run")
def run_poll(
    source: Optional[list[str]] = typer.Option(
        None,
        "--source",
        "-s",
        help="Poll only these sources (repeatable)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Log push messages instead of sending them",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the summary, including the push service response, as JSON",
    ),
) -> None:
    """Run one poll cycle: fetch, ingest new events and push alerts.

    Intended to be called from cron or any external scheduler.

    Examples:
        stockwatch poll run
        stockwatch poll run --dry-run
        stockwatch poll run -s utah_dwr
        stockwatch poll run --json
    """
    from sqlalchemy.exc import SQLAlchemyError

    from stockwatch.core.backends.base import BackendError
    from stockwatch.core.config.loader import ConfigError, load_all_source_configs, load_app_config
    from stockwatch.core.orchestrator.runner import run_poll_once

    try:
        config = load_app_config()
        configs = load_all_source_configs(config.sources_dir)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        if e.details:
            err_console.print(f"[dim]{escape(e.details)}[/dim]")
        raise typer.Exit(1)

    if source:
        missing = [name for name in source if name not in configs]
        if missing:
            err_console.print(f"[red]Unknown source(s):[/red] {escape(', '.join(missing))}")
            err_console.print(f"[dim]Available: {', '.join(configs) or 'none'}[/dim]")
            raise typer.Exit(1)
        selected = [configs[name] for name in source]
    else:
        selected = list(configs.values())

    if not any(cfg.enabled for cfg in selected):
        err_console.print("[red]No enabled sources to poll[/red]")
        raise typer.Exit(1)

    if dry_run and not as_json:
        console.print("[yellow]DRY RUN - push messages will only be logged[/yellow]")

    try:
        summary = asyncio.run(run_poll_once(config, dry_run=dry_run, sources=selected))
    except (BackendError, ConfigError, SQLAlchemyError) as e:
        err_console.print(f"[red]Poll failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(orjson.dumps(summary.to_dict(), default=str).decode("utf-8"))
        return

    table = Table(title="Poll Summary", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Parsed", str(summary.parsed))
    table.add_row("Inserted", f"[green]{summary.inserted}[/green]")
    table.add_row("Subscriptions", str(summary.subscriptions))
    table.add_row("Matched messages", str(summary.matched_messages))
    table.add_row("Pushed", str(summary.pushed))

    console.print()
    console.print(table)


@app.command("history")
def show_history(
    limit: int = typer.Option(
        10,
        "--limit",
        "-n",
        help="Number of runs to show",
    ),
) -> None:
    """Show recent poll runs."""
    from stockwatch.core.config.loader import load_app_config
    from stockwatch.persistence.store import open_store

    config = load_app_config()

    async def _load():
        async with open_store(config.database) as store:
            return await store.recent_runs(limit=limit)

    runs = asyncio.run(_load())

    if not runs:
        console.print("[dim]No poll runs yet.[/dim]")
        return

    table = Table(title="Poll Runs", show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Started", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Parsed", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Matched", justify="right")
    table.add_column("Pushed", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Error")

    for run in runs:
        style = "green" if run.status == "COMPLETED" else "red"
        status_label = f"{run.status} (dry)" if run.dry_run else run.status
        table.add_row(
            str(run.id),
            run.started_at.strftime("%Y-%m-%d %H:%M:%S"),
            f"[{style}]{status_label}[/{style}]",
            str(run.parsed),
            str(run.inserted),
            str(run.matched_messages),
            str(run.pushed),
            f"{run.duration_seconds:.1f}s" if run.duration_seconds is not None else "-",
            escape((run.error_message or "")[:60]),
        )

    console.print(table)
