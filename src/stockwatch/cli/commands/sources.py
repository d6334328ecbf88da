"""
Report source commands.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Inspect report sources",
    no_args_is_help=True,
)


@app.command("list")
def list_sources() -> None:
    """List configured report sources."""
    from stockwatch.core.config.loader import ConfigError, load_all_source_configs, load_app_config

    config = load_app_config()

    try:
        configs = load_all_source_configs(config.sources_dir)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not configs:
        console.print(f"[dim]No sources configured in {config.sources_dir}[/dim]")
        return

    table = Table(title="Report Sources", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Display Name")
    table.add_column("Strategy")
    table.add_column("Enabled", justify="center")
    table.add_column("URL", style="dim")

    for cfg in configs.values():
        enabled = "[green]yes[/green]" if cfg.enabled else "[red]no[/red]"
        table.add_row(
            escape(cfg.name),
            escape(cfg.effective_display_name),
            cfg.strategy.value,
            enabled,
            escape(str(cfg.url)),
        )

    console.print(table)


@app.command("test")
def test_source(
    name: str = typer.Argument(..., help="Source name"),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        help="Number of events to show",
    ),
) -> None:
    """Fetch and parse one source without storing anything."""
    from stockwatch.core.backends.base import BackendError
    from stockwatch.core.config.loader import ConfigError, load_all_source_configs, load_app_config
    from stockwatch.core.orchestrator.runner import collect_source, create_backend

    config = load_app_config()

    try:
        configs = load_all_source_configs(config.sources_dir)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    source = configs.get(name)
    if source is None:
        err_console.print(f"[red]Source not found:[/red] {escape(name)}")
        err_console.print(f"[dim]Available: {', '.join(configs) or 'none'}[/dim]")
        raise typer.Exit(1)

    async def _collect():
        async with create_backend(config) as backend:
            return await collect_source(backend, source, config.fetch)

    console.print(f"Fetching [cyan]{escape(str(source.url))}[/cyan] ...")

    try:
        events = asyncio.run(_collect())
    except BackendError as e:
        err_console.print(f"[red]Fetch failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] {len(events)} events parsed")

    if not events:
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan")
    table.add_column("Water")
    table.add_column("County")
    table.add_column("Species")
    table.add_column("Qty", justify="right")
    table.add_column("ID", style="dim")

    for ev in events[:limit]:
        table.add_row(
            ev.date_stocked,
            escape(ev.water_name),
            escape(ev.county),
            escape(ev.species),
            str(ev.quantity) if ev.quantity is not None else "-",
            ev.id[:10],
        )

    console.print(table)


@app.command("validate")
def validate_source(
    path: Path = typer.Argument(..., help="Source YAML file"),
) -> None:
    """Validate a source configuration file."""
    from stockwatch.core.config.loader import validate_source_config_file

    errors = validate_source_config_file(path)

    if errors:
        err_console.print(f"[red]Invalid:[/red] {path}")
        for error in errors:
            err_console.print(f"  - {escape(error)}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] {path} is valid")
