"""Shared fixtures for StockWatch tests."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest

from stockwatch.core.normalize.canonical import (
    StockingEvent,
    compute_event_id,
    compute_fingerprint,
)
from stockwatch.persistence.db import Database
from stockwatch.persistence.store import SqlRecordStore

FIXED_NOW = datetime(2026, 3, 5, 12, 0, 0)


TABULAR_PAGE = """\
<html>
<head><title>Fish Stocking</title><script>var rows = "<tr><td>x</td></tr>";</script></head>
<body>
<table id="fishStocking">
  <tr><th>Water</th><th>County</th><th>Species</th><th>Quantity</th><th>Avg Length</th><th>Date</th></tr>
  <tr>
    <td><a href="/water/1">Blue Lake</a></td>
    <td>Wasatch</td>
    <td>Rainbow Trout</td>
    <td>1,200</td>
    <td>10.5</td>
    <td>3/4/2026</td>
  </tr>
  <tr>
    <td>Deer Creek</td>
    <td>Wasatch</td>
    <td>Tiger Trout</td>
    <td>500</td>
    <td>8</td>
    <td>3/1/2026</td>
  </tr>
  <tr><td>Partial</td><td>Row</td><td>Only</td><td>3</td><td>cells</td></tr>
</table>
</body>
</html>
"""


@pytest.fixture
def tabular_page() -> str:
    return TABULAR_PAGE


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
async def database(db_url: str):
    db = Database(db_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def store(database: Database) -> SqlRecordStore:
    return SqlRecordStore(database)


@pytest.fixture
def make_event() -> Callable[..., StockingEvent]:
    """Factory for normalized events with a correct content id."""

    def _make(
        water_name: str = "Blue Lake",
        county: str = "WASATCH",
        species: str = "RAINBOW TROUT",
        quantity: int | None = 1200,
        avg_length: float | None = 10.5,
        date_stocked: str = "2026-03-04",
        first_seen_at: datetime = FIXED_NOW,
        source: str | None = "test",
    ) -> StockingEvent:
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

    return _make
