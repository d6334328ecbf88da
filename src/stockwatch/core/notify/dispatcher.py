"""Batch dispatch of notification messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from stockwatch.core.matching.matcher import Subscription

from .messages import NotificationMessage, build_test_messages
from .transport import PushTransport

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Outcome of one dispatch call."""

    sent: int = 0
    response: Any = None


async def dispatch(
    messages: Sequence[NotificationMessage],
    transport: PushTransport,
) -> DispatchResult:
    """Send a batch in a single transport call.

    An empty batch makes no call. Transport errors propagate.
    """
    if not messages:
        return DispatchResult()

    result = await transport.send(messages)
    return DispatchResult(sent=len(messages), response=result.data)


async def send_test_push(
    subscriptions: Iterable[Subscription],
    transport: PushTransport,
) -> DispatchResult:
    """Send a test message to every subscription with a real token."""
    messages = build_test_messages(subscriptions)
    if not messages:
        logger.warning("No real push tokens found")
    return await dispatch(messages, transport)
