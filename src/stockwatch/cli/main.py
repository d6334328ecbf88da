"""
StockWatch CLI - Main entry point.

A terminal-first fish stocking report poller with push alerts.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from stockwatch import __app_name__, __version__

# Load environment variables from .env (if present)
load_dotenv()

# Install rich traceback for better error display
install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

# Create main app
app = typer.Typer(
    name=__app_name__,
    help="Fish stocking report poller and push notifier",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Override the configured log level",
    ),
) -> None:
    """StockWatch - Fish stocking alerts."""
    from stockwatch.core.config.loader import ConfigError, load_app_config
    from stockwatch.core.logging import setup_logging

    try:
        config = load_app_config()
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        if e.details:
            err_console.print(f"[dim]{escape(e.details)}[/dim]")
        raise typer.Exit(1)

    setup_logging(
        level=log_level or config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import db, events, poll, sources, subscriptions  # noqa: E402

app.add_typer(poll.app, name="poll", help="Run poll cycles")
app.add_typer(subscriptions.app, name="subscriptions", help="Manage push subscriptions")
app.add_typer(events.app, name="events", help="Browse stored stocking events")
app.add_typer(sources.app, name="sources", help="Inspect report sources")
app.add_typer(db.app, name="db", help="Database operations")


# =============================================================================
# Init Command
# =============================================================================


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Initialize StockWatch database and configuration.

    Creates required directories, a default app.yaml, and the
    database schema.
    """
    from stockwatch.core.config.loader import load_app_config
    from stockwatch.persistence.db import Database

    app_config_path = Path("configs/app.yaml")
    if not app_config_path.exists() or force:
        _create_default_app_config(app_config_path)

    config = load_app_config(app_config_path)
    config.ensure_directories()

    async def _create() -> None:
        async with Database.from_config(config.database) as db:
            await db.create_all()

    asyncio.run(_create())

    console.print()
    console.print(Panel.fit(
        "[bold green]OK - StockWatch initialized successfully![/bold green]\n\n"
        "Created:\n"
        "  - [cyan]configs/app.yaml[/cyan] - Application configuration\n"
        "  - [cyan]configs/sources/[/cyan] - Report source directory\n"
        "  - [cyan]data/[/cyan] - Database storage\n\n"
        "Next steps:\n"
        "  1. Add a source file under [yellow]configs/sources/[/yellow]\n"
        "  2. Test it: [yellow]stockwatch sources test <name>[/yellow]\n"
        "  3. Poll: [yellow]stockwatch poll run --dry-run[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


def _create_default_app_config(path: Path) -> None:
    """Create default app.yaml configuration."""
    default_config = """\
# StockWatch Configuration

# Directory paths
config_dir: configs
data_dir: data

# Database settings
database:
  url: ${DATABASE_URL:-sqlite:///data/stockwatch.db}
  echo: false

# Logging settings
logging:
  level: INFO
  file: logs/stockwatch.log
  json_format: true
  rich_console: true

# Report page fetching
fetch:
  user_agent: ${POLL_USER_AGENT:-FishStockAlerts/0.1}
  accept: text/html
  timeout_seconds: 30
  max_retries: 3

# Push gateway
push:
  url: https://exp.host/--/api/v2/push/send
  timeout_seconds: 30
  dry_run: false
"""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(default_config, encoding="utf-8")


# =============================================================================
# Status Command
# =============================================================================


@app.command()
def status() -> None:
    """Show StockWatch status and statistics."""
    from rich.table import Table

    from stockwatch.core.config.loader import load_all_source_configs, load_app_config
    from stockwatch.persistence.db import Database
    from stockwatch.persistence.store import SqlRecordStore

    config = load_app_config()

    async def _gather():
        async with Database.from_config(config.database) as db:
            await db.create_all()
            store = SqlRecordStore(db)
            return await store.counts(), await store.recent_runs(limit=5)

    counts, runs = asyncio.run(_gather())
    source_configs = load_all_source_configs(config.sources_dir)

    console.print()
    console.print("[bold]StockWatch Status[/bold]")
    console.print()

    stats_table = Table(show_header=False)
    stats_table.add_column("Item", style="cyan")
    stats_table.add_column("Value", justify="right")
    stats_table.add_row("Sources", str(len(source_configs)))
    stats_table.add_row("Stocking events", str(counts["events"]))
    stats_table.add_row("Subscriptions", str(counts["subscriptions"]))
    console.print(stats_table)
    console.print()

    if not runs:
        console.print("[dim]No poll runs yet.[/dim] Run: stockwatch poll run")
        return

    run_table = Table(title="Recent Poll Runs", show_header=True, header_style="bold magenta")
    run_table.add_column("Started", style="cyan")
    run_table.add_column("Status", justify="center")
    run_table.add_column("Parsed", justify="right")
    run_table.add_column("New", justify="right")
    run_table.add_column("Pushed", justify="right")

    for run in runs:
        style = "green" if run.status == "COMPLETED" else "red"
        run_table.add_row(
            run.started_at.strftime("%Y-%m-%d %H:%M"),
            f"[{style}]{run.status}[/{style}]",
            str(run.parsed),
            str(run.inserted),
            str(run.pushed),
        )

    console.print(run_table)


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
