"""
Canonical stocking event model for normalized data.

Provides a clean interface between raw extraction and database persistence.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from stockwatch.core.extract.base import RawRow

from .parsing import (
    format_number,
    normalize_whitespace,
    parse_length,
    parse_quantity,
    parse_stocking_date,
)

logger = logging.getLogger(__name__)

FINGERPRINT_DELIMITER = "|"


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the store's convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class StockingEvent:
    """Normalized stocking event ready for persistence.

    Immutable once stored; a corrected report shows up as a new event
    with a different id.
    """

    id: str
    water_name: str
    county: str
    species: str
    quantity: int | None
    avg_length: float | None
    date_stocked: str  # YYYY-MM-DD
    first_seen_at: datetime

    # Metadata, not part of the fingerprint
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for persistence."""
        return asdict(self)


def compute_fingerprint(
    water_name: str,
    county: str,
    species: str,
    quantity: int | None,
    avg_length: float | None,
    date_stocked: str,
) -> str:
    """Join the defining fields in fixed order, absent numbers as ""."""
    return FINGERPRINT_DELIMITER.join(
        [
            water_name,
            county,
            species,
            format_number(quantity),
            format_number(avg_length),
            date_stocked,
        ]
    )


def compute_event_id(fingerprint: str) -> str:
    """SHA-1 hex digest of the fingerprint."""
    return hashlib.sha1(fingerprint.encode("utf-8")).hexdigest()


def normalize_row(
    row: RawRow,
    first_seen_at: datetime,
    source: str | None = None,
) -> StockingEvent | None:
    """Normalize one raw row.

    Returns None when water, county, species or date is missing.
    """
    water_name = normalize_whitespace(row.water)
    county = normalize_whitespace(row.county).upper()
    species = normalize_whitespace(row.species).upper()
    date_stocked = parse_stocking_date(row.date)

    if not water_name or not county or not species or not date_stocked:
        return None

    quantity = parse_quantity(row.quantity)
    avg_length = parse_length(row.length)

    fingerprint = compute_fingerprint(
        water_name, county, species, quantity, avg_length, date_stocked
    )

    return StockingEvent(
        id=compute_event_id(fingerprint),
        water_name=water_name,
        county=county,
        species=species,
        quantity=quantity,
        avg_length=avg_length,
        date_stocked=date_stocked,
        first_seen_at=first_seen_at,
        source=source,
    )


def normalize_rows(
    rows: Iterable[RawRow],
    source: str | None = None,
    now: datetime | None = None,
) -> list[StockingEvent]:
    """Normalize a batch of rows, dropping invalid rows and in-batch duplicates.

    Every event in the batch shares one first_seen_at. The first
    occurrence of a duplicated id wins.
    """
    first_seen_at = now or utc_now()

    events: list[StockingEvent] = []
    seen: set[str] = set()
    dropped = 0

    for row in rows:
        event = normalize_row(row, first_seen_at, source=source)
        if event is None:
            dropped += 1
            continue
        if event.id in seen:
            continue
        seen.add(event.id)
        events.append(event)

    if dropped:
        logger.debug("Dropped %d incomplete rows", dropped, extra={"source": source or "-"})

    return events
