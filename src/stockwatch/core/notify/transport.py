"""
Push transports.

ExpoPushTransport sends a whole batch in one POST to the Expo push
service. LogPushTransport only logs what would be sent.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

import httpx

from stockwatch.core.backends.base import PushError
from stockwatch.core.config.models import EXPO_PUSH_URL

from .messages import NotificationMessage

logger = logging.getLogger(__name__)


@dataclass
class PushResponse:
    """Gateway response to one batch."""

    status_code: int
    data: Any = None


class PushTransport(ABC):
    """Abstract base class for push delivery."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport identifier."""
        pass

    @abstractmethod
    async def send(self, messages: Sequence[NotificationMessage]) -> PushResponse:
        """Send one batch of messages.

        Raises:
            PushError: If the gateway rejects the batch or cannot be reached
        """
        pass

    async def close(self) -> None:
        """Clean up transport resources."""
        pass

    async def __aenter__(self) -> "PushTransport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class ExpoPushTransport(PushTransport):
    """Expo push service over httpx."""

    def __init__(
        self,
        url: str = EXPO_PUSH_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "expo"

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def send(self, messages: Sequence[NotificationMessage]) -> PushResponse:
        client = await self._ensure_client()
        payload = [message.to_payload() for message in messages]

        try:
            response = await client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise PushError(f"Expo push failed: {e}", url=self.url, cause=e) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.is_success:
            raise PushError(
                f"Expo push failed: {response.status_code} {response.text}",
                url=self.url,
                status_code=response.status_code,
                body=response.text,
            )

        logger.info("Pushed %d messages", len(messages), extra={"pushed": len(messages)})
        return PushResponse(status_code=response.status_code, data=data)

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


class LogPushTransport(PushTransport):
    """Dry-run transport: logs each message instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[NotificationMessage] = []

    @property
    def name(self) -> str:
        return "log"

    async def send(self, messages: Sequence[NotificationMessage]) -> PushResponse:
        for message in messages:
            logger.info("Would send to=%s | %s | %s", message.to, message.title, message.body)
        self.sent.extend(messages)
        return PushResponse(status_code=200, data={"dryRun": True, "count": len(messages)})
