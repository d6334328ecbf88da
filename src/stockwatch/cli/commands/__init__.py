"""CLI command modules."""

from . import db, events, poll, sources, subscriptions

__all__ = [
    "db",
    "events",
    "poll",
    "sources",
    "subscriptions",
]
