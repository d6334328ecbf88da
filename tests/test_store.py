"""Tests for the SQL record store."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from stockwatch.core.config.models import RunStatus
from stockwatch.core.normalize.canonical import utc_now

from .conftest import FIXED_NOW


class TestInsert:
    async def test_same_event_stored_once(self, store, make_event):
        event = make_event()

        first = await store.insert([event])
        second = await store.insert([make_event(first_seen_at=FIXED_NOW + timedelta(hours=1))])

        assert first.inserted_count == 1
        assert second.inserted_count == 0
        assert second.new_records == []
        assert (await store.counts())["events"] == 1

    async def test_stored_event_keeps_first_seen_at(self, store, make_event):
        await store.insert([make_event()])
        await store.insert([make_event(first_seen_at=FIXED_NOW + timedelta(days=1))])

        (stored,) = await store.get_recent()

        assert stored.first_seen_at == FIXED_NOW

    async def test_new_records_are_only_this_batch(self, store, make_event):
        old = make_event(water_name="Old Pond")
        await store.insert([old])

        batch = [
            make_event(water_name="Blue Lake"),
            old,
            make_event(water_name="Deer Creek"),
        ]
        result = await store.insert(batch)

        assert result.inserted_count == 2
        assert [e.water_name for e in result.new_records] == ["Blue Lake", "Deer Creek"]
        assert result.new_records[0] == batch[0]

    async def test_empty_batch(self, store):
        result = await store.insert([])

        assert result.inserted_count == 0
        assert result.new_records == []

    async def test_optional_fields_round_trip(self, store, make_event):
        event = make_event(quantity=None, avg_length=None, source=None)

        result = await store.insert([event])

        assert result.new_records == [event]


class TestSubscriptions:
    async def test_upsert_replaces_filters(self, store):
        await store.upsert_subscription("TOK1", counties=["WASATCH"], species=["RAINBOW TROUT"])
        await store.upsert_subscription("TOK1", waters=["Blue Lake"])

        (sub,) = await store.list_subscriptions()

        assert sub.token == "TOK1"
        assert sub.counties == []
        assert sub.species == []
        assert sub.waters == ["Blue Lake"]

    async def test_list_in_creation_order(self, store):
        await store.upsert_subscription("B")
        await store.upsert_subscription("A", counties=["SUMMIT"])

        subs = await store.list_subscriptions()

        assert [s.token for s in subs] == ["B", "A"]
        assert subs[1].counties == ["SUMMIT"]

    async def test_token_trimmed(self, store):
        await store.upsert_subscription("  TOK1 ")

        (sub,) = await store.list_subscriptions()

        assert sub.token == "TOK1"

    async def test_empty_token_rejected(self, store):
        with pytest.raises(ValueError):
            await store.upsert_subscription("  ")

    async def test_remove(self, store):
        await store.upsert_subscription("TOK1")

        assert await store.remove_subscription("TOK1") is True
        assert await store.remove_subscription("TOK1") is False
        assert await store.list_subscriptions() == []


class TestQueries:
    @pytest.fixture
    async def seeded(self, store, make_event):
        await store.insert(
            [
                make_event(water_name="Blue Lake", date_stocked="2026-03-04"),
                make_event(water_name="Deer Creek", species="TIGER TROUT", date_stocked="2026-03-01"),
                make_event(water_name="Blue Mesa", county="GUNNISON", date_stocked="2026-02-20"),
                make_event(water_name="Lake 100%", county="SUMMIT", date_stocked="2026-01-15"),
            ]
        )
        return store

    async def test_recent_by_stocking_date(self, seeded):
        events = await seeded.get_recent(limit=3)

        assert [e.water_name for e in events] == ["Blue Lake", "Deer Creek", "Blue Mesa"]

    async def test_recent_ties_newest_seen_first(self, store, make_event):
        await store.insert([make_event(water_name="Early", first_seen_at=datetime(2026, 3, 4, 8))])
        await store.insert([make_event(water_name="Late", first_seen_at=datetime(2026, 3, 4, 9))])

        events = await store.get_recent()

        assert [e.water_name for e in events] == ["Late", "Early"]

    async def test_search_exact_county(self, seeded):
        total, events = await seeded.search_events(county="wasatch")

        assert total == 2
        assert {e.water_name for e in events} == {"Blue Lake", "Deer Creek"}

    async def test_search_species(self, seeded):
        total, events = await seeded.search_events(species="Tiger Trout")

        assert total == 1
        assert events[0].water_name == "Deer Creek"

    async def test_search_water_substring(self, seeded):
        total, events = await seeded.search_events(water="blue")

        assert total == 2
        assert [e.water_name for e in events] == ["Blue Lake", "Blue Mesa"]

    async def test_search_water_wildcards_escaped(self, seeded):
        total, _ = await seeded.search_events(water="100%")
        none_total, _ = await seeded.search_events(water="%")

        assert total == 1
        assert none_total == 1

    async def test_search_pagination(self, seeded):
        total, events = await seeded.search_events(limit=2, offset=1)

        assert total == 4
        assert [e.water_name for e in events] == ["Deer Creek", "Blue Mesa"]

    async def test_search_limit_clamped(self, seeded):
        total, events = await seeded.search_events(limit=0)

        assert total == 4
        assert len(events) == 1

    async def test_distinct_values(self, seeded):
        assert await seeded.distinct_values("county") == ["GUNNISON", "SUMMIT", "WASATCH"]
        assert await seeded.distinct_values("species") == ["RAINBOW TROUT", "TIGER TROUT"]
        assert await seeded.distinct_values("water", county="wasatch") == ["Blue Lake", "Deer Creek"]

    async def test_distinct_unknown_field(self, seeded):
        with pytest.raises(ValueError):
            await seeded.distinct_values("quantity")


class TestRuns:
    async def test_record_and_list_runs(self, store):
        await store.record_run(
            RunStatus.COMPLETED,
            datetime(2026, 3, 5, 8),
            summary={"parsed": 3, "inserted": 2, "pushed": 1, "transport_response": None},
            sources=["utah_dwr"],
        )
        await store.record_run(
            RunStatus.FAILED,
            datetime(2026, 3, 5, 9),
            error_message="Fetch failed: 500",
            dry_run=True,
        )

        runs = await store.recent_runs()

        assert [r.status for r in runs] == ["FAILED", "COMPLETED"]
        assert runs[0].error_message == "Fetch failed: 500"
        assert runs[0].dry_run is True
        assert runs[1].inserted == 2
        assert runs[1].pushed == 1
        assert runs[1].sources_json == ["utah_dwr"]

    async def test_run_duration(self, store):
        await store.record_run(RunStatus.COMPLETED, utc_now() - timedelta(seconds=90))

        (run,) = await store.recent_runs()

        assert 90 <= run.duration_seconds < 150


def test_unfinished_run_has_no_duration():
    from stockwatch.persistence.models import PollRun

    run = PollRun(status="RUNNING", started_at=datetime(2026, 3, 5, 8))

    assert run.duration_seconds is None
