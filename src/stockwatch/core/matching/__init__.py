"""Subscription matching against stocking events."""

from .matcher import Subscription, match_events, matches

__all__ = [
    "Subscription",
    "matches",
    "match_events",
]
