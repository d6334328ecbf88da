"""
Repository pattern for database operations.

Provides clean abstractions for the queries the pipeline and the CLI
need. Repositories work on a session owned by the caller; they never
commit.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from stockwatch.core.normalize.canonical import StockingEvent, utc_now

from .models import PollRun, StockEvent, SubscriptionRecord

MAX_PAGE_SIZE = 200

DISTINCT_FIELDS = {
    "county": StockEvent.county,
    "species": StockEvent.species,
    "water": StockEvent.water_name,
}


# =============================================================================
# Event Repository
# =============================================================================


class EventRepository:
    """Repository for StockEvent operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert_new(self, events: Sequence[StockingEvent]) -> list[str]:
        """Insert events whose id is not stored yet.

        Returns:
            Ids of the rows actually written, in input order
        """
        inserted: list[str] = []

        for ev in events:
            stmt = (
                sqlite_insert(StockEvent)
                .values(
                    id=ev.id,
                    water_name=ev.water_name,
                    county=ev.county,
                    species=ev.species,
                    quantity=ev.quantity,
                    avg_length=ev.avg_length,
                    date_stocked=ev.date_stocked,
                    first_seen_at=ev.first_seen_at,
                    source=ev.source,
                )
                .on_conflict_do_nothing(index_elements=["id"])
            )
            result = await self.session.execute(stmt)
            if result.rowcount and result.rowcount > 0:
                inserted.append(ev.id)

        return inserted

    async def get_by_ids(self, ids: Sequence[str]) -> Sequence[StockEvent]:
        """Get events by id, newest first_seen_at first."""
        if not ids:
            return []
        stmt = (
            select(StockEvent)
            .where(StockEvent.id.in_(ids))
            .order_by(StockEvent.first_seen_at.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_recent(self, limit: int = 50) -> Sequence[StockEvent]:
        """Newest stocking dates first, ties by first_seen_at."""
        stmt = (
            select(StockEvent)
            .order_by(StockEvent.date_stocked.desc(), StockEvent.first_seen_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def search(
        self,
        county: str | None = None,
        species: str | None = None,
        water: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[int, Sequence[StockEvent]]:
        """Search events.

        County and species match exactly, water by substring; all
        case-insensitive. Limit is capped at MAX_PAGE_SIZE.

        Returns:
            (total matching, page of events)
        """
        conditions = []

        county = (county or "").strip().upper()
        species = (species or "").strip().upper()
        water = (water or "").strip().upper()

        if county:
            conditions.append(StockEvent.county == county)
        if species:
            conditions.append(StockEvent.species == species)
        if water:
            conditions.append(StockEvent.water_name.icontains(water, autoescape=True))

        count_stmt = select(func.count()).select_from(StockEvent).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(offset, 0)

        stmt = (
            select(StockEvent)
            .where(*conditions)
            .order_by(StockEvent.date_stocked.desc(), StockEvent.first_seen_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return total, result.scalars().all()

    async def distinct_values(self, field: str, county: str | None = None) -> list[str]:
        """Sorted distinct county, species or water values.

        Waters can be restricted to one county.
        """
        if field not in DISTINCT_FIELDS:
            raise ValueError(f"Unknown field '{field}', expected one of {sorted(DISTINCT_FIELDS)}")

        column = DISTINCT_FIELDS[field]
        stmt = select(column).distinct().where(column != "")

        county = (county or "").strip().upper()
        if field == "water" and county:
            stmt = stmt.where(StockEvent.county == county)

        result = await self.session.execute(stmt.order_by(column))
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(StockEvent))
        return result.scalar_one()


# =============================================================================
# Subscription Repository
# =============================================================================


class SubscriptionRepository:
    """Repository for SubscriptionRecord operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(
        self,
        token: str,
        counties: list[str],
        species: list[str],
        waters: list[str],
    ) -> None:
        """Create or replace the filters for a token.

        Existing filters are overwritten, never merged.
        """
        now = utc_now()
        stmt = sqlite_insert(SubscriptionRecord).values(
            expo_push_token=token,
            counties_json=counties,
            species_json=species,
            waters_json=waters,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["expo_push_token"],
            set_={
                "counties_json": stmt.excluded.counties_json,
                "species_json": stmt.excluded.species_json,
                "waters_json": stmt.excluded.waters_json,
                "updated_at": now,
            },
        )
        await self.session.execute(stmt)

    async def get_all(self) -> Sequence[SubscriptionRecord]:
        stmt = select(SubscriptionRecord).order_by(SubscriptionRecord.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def delete(self, token: str) -> bool:
        """Delete a subscription. Returns True if a row was removed."""
        stmt = delete(SubscriptionRecord).where(SubscriptionRecord.expo_push_token == token)
        result = await self.session.execute(stmt)
        return bool(result.rowcount)

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(SubscriptionRecord))
        return result.scalar_one()


# =============================================================================
# Run Repository
# =============================================================================


class RunRepository:
    """Repository for PollRun operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        status: str,
        started_at: datetime,
        finished_at: datetime | None = None,
        counts: dict[str, int] | None = None,
        error_message: str | None = None,
        sources: list[str] | None = None,
        dry_run: bool = False,
    ) -> PollRun:
        """Record a finished poll run."""
        run = PollRun(
            status=status,
            started_at=started_at,
            finished_at=finished_at or utc_now(),
            error_message=error_message,
            sources_json=sources,
            dry_run=dry_run,
            **(counts or {}),
        )
        self.session.add(run)
        await self.session.flush()
        return run

    async def get_recent(self, limit: int = 20) -> Sequence[PollRun]:
        """Get recent runs."""
        stmt = select(PollRun).order_by(PollRun.started_at.desc(), PollRun.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()


def run_counts(summary: dict[str, Any]) -> dict[str, int]:
    """Pick the PollRun counter columns out of a summary dict."""
    columns = ("parsed", "inserted", "subscriptions", "matched_messages", "pushed")
    return {name: int(summary[name]) for name in columns if name in summary}
