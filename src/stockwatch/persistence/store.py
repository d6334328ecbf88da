"""
Record store used by the poll pipeline.

RecordStore is the storage contract the runner and the CLI work
against; SqlRecordStore implements it on the SQLAlchemy repositories.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncGenerator, Sequence

from stockwatch.core.config.models import DatabaseConfig, RunStatus
from stockwatch.core.matching.matcher import Subscription
from stockwatch.core.normalize.canonical import StockingEvent

from .db import Database
from .models import PollRun, StockEvent, SubscriptionRecord
from .repo import EventRepository, RunRepository, SubscriptionRepository, run_counts

logger = logging.getLogger(__name__)


@dataclass
class InsertResult:
    """Outcome of a deduplicating insert."""

    inserted_count: int = 0
    new_records: list[StockingEvent] = field(default_factory=list)


class RecordStore(ABC):
    """Keyed store of stocking events and subscriptions."""

    @abstractmethod
    async def insert(self, events: Sequence[StockingEvent]) -> InsertResult:
        """Store events whose id is new; already stored ids are ignored.

        Returns:
            Count and records of the events actually written by this call
        """

    @abstractmethod
    async def list_subscriptions(self) -> list[Subscription]:
        """All subscriptions."""

    @abstractmethod
    async def get_recent(self, limit: int = 50) -> list[StockingEvent]:
        """Most recent events by stocking date."""

    @abstractmethod
    async def upsert_subscription(
        self,
        token: str,
        counties: list[str] | None = None,
        species: list[str] | None = None,
        waters: list[str] | None = None,
    ) -> None:
        """Create a subscription or replace its filters."""

    @abstractmethod
    async def remove_subscription(self, token: str) -> bool:
        """Delete a subscription by token."""

    @abstractmethod
    async def search_events(
        self,
        county: str | None = None,
        species: str | None = None,
        water: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[int, list[StockingEvent]]:
        """Filtered, paginated event listing."""

    @abstractmethod
    async def distinct_values(self, field: str, county: str | None = None) -> list[str]:
        """Distinct counties, species or waters."""

    async def record_run(
        self,
        status: RunStatus,
        started_at: datetime,
        summary: dict[str, Any] | None = None,
        error_message: str | None = None,
        sources: list[str] | None = None,
        dry_run: bool = False,
    ) -> None:
        """Persist the outcome of a poll cycle. Stores without a run log ignore it."""


def to_event(row: StockEvent) -> StockingEvent:
    return StockingEvent(
        id=row.id,
        water_name=row.water_name,
        county=row.county,
        species=row.species,
        quantity=row.quantity,
        avg_length=row.avg_length,
        date_stocked=row.date_stocked,
        first_seen_at=row.first_seen_at,
        source=row.source,
    )


def to_subscription(row: SubscriptionRecord) -> Subscription:
    return Subscription(
        token=row.expo_push_token,
        counties=list(row.counties_json or []),
        species=list(row.species_json or []),
        waters=list(row.waters_json or []),
        id=row.id,
    )


class SqlRecordStore(RecordStore):
    """RecordStore backed by a Database."""

    def __init__(self, db: Database):
        self.db = db

    async def insert(self, events: Sequence[StockingEvent]) -> InsertResult:
        if not events:
            return InsertResult()

        # One transaction for the whole batch
        async with self.db.session() as session:
            inserted_ids = await EventRepository(session).insert_new(events)

        if not inserted_ids:
            return InsertResult()

        async with self.db.session() as session:
            rows = await EventRepository(session).get_by_ids(inserted_ids)
            records = [to_event(row) for row in rows]

        # Batch order among equal first_seen_at
        position = {event_id: i for i, event_id in enumerate(inserted_ids)}
        records.sort(key=lambda e: position[e.id])
        records.sort(key=lambda e: e.first_seen_at, reverse=True)

        logger.debug("Inserted %d of %d events", len(inserted_ids), len(events))
        return InsertResult(inserted_count=len(inserted_ids), new_records=records)

    async def list_subscriptions(self) -> list[Subscription]:
        async with self.db.session() as session:
            rows = await SubscriptionRepository(session).get_all()
            return [to_subscription(row) for row in rows]

    async def get_recent(self, limit: int = 50) -> list[StockingEvent]:
        async with self.db.session() as session:
            rows = await EventRepository(session).get_recent(limit)
            return [to_event(row) for row in rows]

    async def upsert_subscription(
        self,
        token: str,
        counties: list[str] | None = None,
        species: list[str] | None = None,
        waters: list[str] | None = None,
    ) -> None:
        if not token or not token.strip():
            raise ValueError("Push token is required")

        async with self.db.session() as session:
            await SubscriptionRepository(session).upsert(
                token.strip(),
                counties=list(counties or []),
                species=list(species or []),
                waters=list(waters or []),
            )

    async def remove_subscription(self, token: str) -> bool:
        async with self.db.session() as session:
            return await SubscriptionRepository(session).delete(token)

    async def search_events(
        self,
        county: str | None = None,
        species: str | None = None,
        water: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[int, list[StockingEvent]]:
        async with self.db.session() as session:
            total, rows = await EventRepository(session).search(
                county=county,
                species=species,
                water=water,
                limit=limit,
                offset=offset,
            )
            return total, [to_event(row) for row in rows]

    async def distinct_values(self, field: str, county: str | None = None) -> list[str]:
        async with self.db.session() as session:
            return await EventRepository(session).distinct_values(field, county=county)

    async def record_run(
        self,
        status: RunStatus,
        started_at: datetime,
        summary: dict[str, Any] | None = None,
        error_message: str | None = None,
        sources: list[str] | None = None,
        dry_run: bool = False,
    ) -> None:
        async with self.db.session() as session:
            await RunRepository(session).create(
                status=status.value,
                started_at=started_at,
                counts=run_counts(summary or {}),
                error_message=error_message,
                sources=sources,
                dry_run=dry_run,
            )

    async def recent_runs(self, limit: int = 10) -> list[PollRun]:
        async with self.db.session() as session:
            return list(await RunRepository(session).get_recent(limit))

    async def counts(self) -> dict[str, int]:
        """Row counts for status output."""
        async with self.db.session() as session:
            return {
                "events": await EventRepository(session).count(),
                "subscriptions": await SubscriptionRepository(session).count(),
            }


@asynccontextmanager
async def open_store(config: DatabaseConfig) -> AsyncGenerator[SqlRecordStore, None]:
    """SqlRecordStore on a fresh Database; tables are created if missing.

    Usage:
        async with open_store(config.database) as store:
            await store.list_subscriptions()
    """
    db = Database.from_config(config)
    try:
        await db.create_all()
        yield SqlRecordStore(db)
    finally:
        await db.dispose()
