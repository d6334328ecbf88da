"""
Push notification messages.

Formats stocking events into push messages and collapses duplicates so a
device gets at most one message per event per batch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from stockwatch.core.matching.matcher import Subscription
from stockwatch.core.normalize.canonical import StockingEvent
from stockwatch.core.normalize.parsing import format_number

TEST_TOKEN_MARKER = "TESTTOKEN"


@dataclass
class NotificationMessage:
    """One push message addressed to one device token."""

    to: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    sound: str = "default"

    @property
    def key(self) -> tuple[str, Any]:
        """Deduplication key: (token, event id)."""
        return (self.to, self.data.get("eventId"))

    def to_payload(self) -> dict[str, Any]:
        """JSON object accepted by the push gateway."""
        return {
            "to": self.to,
            "sound": self.sound,
            "title": self.title,
            "body": self.body,
            "data": self.data,
        }


def format_notification(event: StockingEvent) -> tuple[str, str, dict[str, Any]]:
    """Build (title, body, data) for a stocking event.

    A missing or zero quantity reads "Fish stocked"; the average length
    is only shown when present and non-zero.
    """
    if event.quantity:
        qty = f"{event.quantity:,} fish"
    else:
        qty = "Fish stocked"

    length = f' • {format_number(event.avg_length)}" avg' if event.avg_length else ""

    title = f"Stocked: {event.species}"
    body = f"{event.water_name} ({event.county}) — {qty}{length} — {event.date_stocked}"
    return title, body, {"eventId": event.id}


def build_messages(
    pairs: Iterable[tuple[StockingEvent, Subscription]],
) -> list[NotificationMessage]:
    """One message per matched (event, subscription) pair."""
    messages = []
    for event, subscription in pairs:
        title, body, data = format_notification(event)
        messages.append(
            NotificationMessage(to=subscription.token, title=title, body=body, data=data)
        )
    return messages


def dedupe_messages(messages: Iterable[NotificationMessage]) -> list[NotificationMessage]:
    """Collapse messages sharing a (token, event id) key.

    The last message for a key wins but keeps the position where the
    key was first seen.
    """
    by_key: dict[tuple[str, Any], NotificationMessage] = {}
    for message in messages:
        by_key[message.key] = message
    return list(by_key.values())


def build_test_messages(subscriptions: Iterable[Subscription]) -> list[NotificationMessage]:
    """A test message for every subscription with a real device token."""
    return [
        NotificationMessage(
            to=sub.token,
            title="Test Push ✅",
            body="If you see this, notifications are working.",
            data={"kind": "test"},
        )
        for sub in subscriptions
        if sub.token and TEST_TOKEN_MARKER not in sub.token
    ]
