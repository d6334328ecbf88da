"""
SQLAlchemy ORM models for StockWatch.

Defines the complete database schema including:
- StockEvents: Immutable stocking events keyed by content id
- Subscriptions: Push tokens and their filter sets
- PollRuns: Execution logs
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from stockwatch.core.normalize.canonical import utc_now


# =============================================================================
# Base Class
# =============================================================================


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    type_annotation_map = {
        dict[str, Any]: JSON,
        list[str]: JSON,
    }


# =============================================================================
# Stock Event Model
# =============================================================================


class StockEvent(Base):
    """One stocking event. Rows are inserted once and never updated."""

    __tablename__ = "stock_events"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)

    water_name: Mapped[str] = mapped_column(String(500), nullable=False)
    county: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    species: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    avg_length: Mapped[float | None] = mapped_column(Float, nullable=True)
    date_stocked: Mapped[str] = mapped_column(String(10), nullable=False)

    first_seen_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    source: Mapped[str | None] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        Index("ix_stock_events_date_seen", "date_stocked", "first_seen_at"),
        Index("ix_stock_events_first_seen_at", "first_seen_at"),
    )

    def __repr__(self) -> str:
        return f"<StockEvent(id='{self.id[:10]}', water='{self.water_name}', date='{self.date_stocked}')>"


# =============================================================================
# Subscription Model
# =============================================================================


class SubscriptionRecord(Base):
    """A device push token with its county, species and water filters."""

    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    expo_push_token: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)

    # Empty list means "any"
    counties_json: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    species_json: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    waters_json: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<SubscriptionRecord(id={self.id}, token='{self.expo_push_token}')>"


# =============================================================================
# Poll Run Model
# =============================================================================


class PollRun(Base):
    """Execution log for one poll cycle."""

    __tablename__ = "poll_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="RUNNING", index=True)
    dry_run: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sources_json: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now, index=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Counters
    parsed: Mapped[int] = mapped_column(Integer, default=0)
    inserted: Mapped[int] = mapped_column(Integer, default=0)
    subscriptions: Mapped[int] = mapped_column(Integer, default=0)
    matched_messages: Mapped[int] = mapped_column(Integer, default=0)
    pushed: Mapped[int] = mapped_column(Integer, default=0)

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def duration_seconds(self) -> float | None:
        """Run duration in seconds, if finished."""
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def __repr__(self) -> str:
        return f"<PollRun(id={self.id}, status='{self.status}')>"
