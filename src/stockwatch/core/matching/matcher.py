"""
Subscription matching.

A subscription holds three filter sets (counties, species, waters).
An empty set matches everything; a non-empty set matches by exact,
case-insensitive membership. All three must match.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from stockwatch.core.normalize.canonical import StockingEvent


@dataclass
class Subscription:
    """A push token and its filter sets."""

    token: str
    counties: list[str] = field(default_factory=list)
    species: list[str] = field(default_factory=list)
    waters: list[str] = field(default_factory=list)

    # Store metadata
    id: int | None = None


def _key(value: str | None) -> str:
    return (value or "").strip().upper()


def _dimension_matches(value: str, allowed: Iterable[str]) -> bool:
    allowed_keys = {_key(item) for item in allowed}
    if not allowed_keys:
        return True
    return _key(value) in allowed_keys


def matches(event: StockingEvent, subscription: Subscription) -> bool:
    """Check whether an event passes all of a subscription's filters."""
    return (
        _dimension_matches(event.county, subscription.counties)
        and _dimension_matches(event.species, subscription.species)
        and _dimension_matches(event.water_name, subscription.waters)
    )


def match_events(
    events: Iterable[StockingEvent],
    subscriptions: Iterable[Subscription],
) -> list[tuple[StockingEvent, Subscription]]:
    """Pair every event with every matching subscription.

    Subscriptions without a token are skipped. Order is events outer,
    subscriptions inner.
    """
    subscriptions = [sub for sub in subscriptions if sub.token]

    return [
        (event, subscription)
        for event in events
        for subscription in subscriptions
        if matches(event, subscription)
    ]
