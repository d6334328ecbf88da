"""
Fetch backend contract and the outbound HTTP error types.

The poll runner fetches through a Backend; the push transports raise
PushError from the same hierarchy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class RequestSpec:
    """One GET request for a report page."""

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    timeout: float | None = None

    # Only used to tag log lines
    source_name: str | None = None


@dataclass
class FetchResult:
    """A successfully fetched report page."""

    url: str
    final_url: str
    status_code: int
    html: str

    elapsed_ms: float
    retry_count: int = 0

    @property
    def ok(self) -> bool:
        """2xx status."""
        return 200 <= self.status_code < 300

    @property
    def content_length(self) -> int:
        """Body size in UTF-8 bytes."""
        return len(self.html.encode("utf-8"))


class Backend(ABC):
    """Abstract base class for page fetching backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier."""

    @abstractmethod
    async def fetch(self, request: RequestSpec) -> FetchResult:
        """Fetch a URL and return the response.

        Raises:
            FetchError: On non-2xx status or unrecoverable transport failure
        """

    async def close(self) -> None:
        """Clean up backend resources."""

    async def __aenter__(self) -> "Backend":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class BackendError(Exception):
    """Base exception for outbound HTTP errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class FetchError(BackendError):
    """Report page could not be fetched (non-2xx or network error)."""


class PushError(BackendError):
    """Push gateway rejected or failed a notification batch."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, url=url, status_code=status_code, cause=cause)
        self.body = body
