"""
Database management commands.
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
    help="Database operations",
    no_args_is_help=True,
)

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "persistence" / "migrations"


def _alembic_config(database_url: str):
    """Alembic config pointed at the packaged migrations and the app database.

    alembic.ini in the working directory is read for its logging sections
    when present.
    """
    from alembic.config import Config

    ini = Path("alembic.ini")
    alembic_cfg = Config(str(ini)) if ini.exists() else Config()
    alembic_cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    alembic_cfg.attributes["database_url"] = database_url
    return alembic_cfg


@app.command("init")
def init_database(
    drop_existing: bool = typer.Option(
        False,
        "--drop",
        help="Drop stocking events, subscriptions and run history first",
    ),
) -> None:
    """Create the schema in the configured database.

    Existing tables are left alone unless --drop is given. The database is
    stamped at the latest migration, so a later `db migrate` only applies
    revisions added after this point.
    """
    from alembic import command
    from sqlalchemy.exc import SQLAlchemyError

    from stockwatch.core.config.loader import load_app_config
    from stockwatch.persistence.db import Database
    from stockwatch.persistence.store import SqlRecordStore

    config = load_app_config()

    if drop_existing and not typer.confirm(
        "Drop all stocking events, subscriptions and poll runs?", default=False
    ):
        raise typer.Abort()

    async def _init() -> dict[str, int]:
        async with Database.from_config(config.database) as db:
            if drop_existing:
                await db.drop_all()
            await db.create_all()
            return await SqlRecordStore(db).counts()

    try:
        counts = asyncio.run(_init())
        command.stamp(_alembic_config(config.database.url), "head")
    except SQLAlchemyError as e:
        err_console.print(f"[red]Database error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    table = Table(title=escape(config.database.url), show_header=True, header_style="bold magenta")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", justify="right")
    table.add_row("stock_events", str(counts["events"]))
    table.add_row("subscriptions", str(counts["subscriptions"]))

    console.print("[green]OK[/green] Schema ready")
    console.print(table)


@app.command("migrate")
def run_migrations(
    revision: str = typer.Option(
        "head",
        "--revision",
        "-r",
        help="Target revision (default: head)",
    ),
) -> None:
    """Upgrade the configured database with Alembic.

    The database URL comes from app.yaml, not from alembic.ini.
    """
    from alembic import command
    from alembic.util.exc import CommandError
    from sqlalchemy.exc import SQLAlchemyError

    from stockwatch.core.config.loader import load_app_config

    config = load_app_config()

    console.print(f"Upgrading [cyan]{escape(config.database.url)}[/cyan] to {escape(revision)}")

    try:
        command.upgrade(_alembic_config(config.database.url), revision)
    except CommandError as e:
        err_console.print(f"[red]Migration failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except SQLAlchemyError as e:
        err_console.print(f"[red]Migration failed:[/red] {escape(str(e))}")
        err_console.print(
            "[dim]Tables created outside Alembic? Run `alembic stamp head` "
            "to mark the schema as current.[/dim]"
        )
        raise typer.Exit(1)

    console.print("[green]OK[/green] Migrations complete")
