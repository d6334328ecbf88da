"""Push notification formatting and delivery."""

from .dispatcher import DispatchResult, dispatch, send_test_push
from .messages import (
    TEST_TOKEN_MARKER,
    NotificationMessage,
    build_messages,
    build_test_messages,
    dedupe_messages,
    format_notification,
)
from .transport import (
    ExpoPushTransport,
    LogPushTransport,
    PushResponse,
    PushTransport,
)

__all__ = [
    # Messages
    "NotificationMessage",
    "format_notification",
    "build_messages",
    "dedupe_messages",
    "build_test_messages",
    "TEST_TOKEN_MARKER",
    # Transports
    "PushTransport",
    "PushResponse",
    "ExpoPushTransport",
    "LogPushTransport",
    # Dispatch
    "DispatchResult",
    "dispatch",
    "send_test_push",
]
