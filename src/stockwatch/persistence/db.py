"""
Database connection and session management.

A Database object owns one async engine and its session factory; it is
created by the caller and passed to whatever needs storage.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from stockwatch.core.config.models import DatabaseConfig

from .models import Base


# =============================================================================
# SQLite Configuration
# =============================================================================


def _configure_sqlite(engine: Engine) -> None:
    """Configure SQLite for concurrent readers and durable writes.

    Enables:
    - WAL mode
    - Synchronous mode NORMAL
    """

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()


def _get_async_url(url: str) -> str:
    """Convert sync database URL to async variant.

    SQLite: sqlite:/// -> sqlite+aiosqlite:///
    """
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def _sqlite_file(url: str) -> Path | None:
    """Database file path for file-backed SQLite URLs."""
    for prefix in ("sqlite+aiosqlite:///", "sqlite:///"):
        if url.startswith(prefix):
            path = url[len(prefix):]
            if path and path != ":memory:":
                return Path(path)
    return None


# =============================================================================
# Database Handle
# =============================================================================


class Database:
    """Async engine plus session factory."""

    def __init__(self, url: str = "sqlite:///data/stockwatch.db", echo: bool = False):
        self.url = _get_async_url(url)

        # Ensure data directory exists for SQLite
        db_file = _sqlite_file(self.url)
        if db_file is not None:
            db_file.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_async_engine(self.url, echo=echo)
        if self.url.startswith("sqlite"):
            _configure_sqlite(self.engine.sync_engine)

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> "Database":
        return cls(url=config.url, echo=config.echo)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that commits on success and rolls back on error.

        Usage:
            async with db.session() as session:
                await session.execute(...)
        """
        session = self.session_factory()

        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create all tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        """Drop all tables. WARNING: destroys all data."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()

    async def __aenter__(self) -> "Database":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.dispose()
