"""
httpx backend for report pages.

Transport errors (connect, read, timeouts) are retried with exponential
backoff. An HTTP error status is an answer, not a glitch, and is raised
as FetchError straight away.
"""

from __future__ import annotations

import logging
import time

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from stockwatch.core.config.models import DEFAULT_USER_AGENT

from .base import Backend, FetchError, FetchResult, RequestSpec

logger = logging.getLogger(__name__)


class HttpBackend(Backend):
    """Fetch report pages over one reusable httpx.AsyncClient.

    Args:
        timeout: Request timeout in seconds, unless the request sets one
        max_retries: Total attempts on transport errors
        user_agent: Default User-Agent header
        accept: Default Accept header
        default_headers: Extra headers sent with every request
        transport: httpx transport override (tests pass a MockTransport)
        retry_wait_min: Shortest backoff between attempts, seconds
        retry_wait_max: Longest backoff between attempts, seconds
    """

    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 3,
        user_agent: str = DEFAULT_USER_AGENT,
        accept: str = "text/html",
        default_headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_wait_min: float = 1.0,
        retry_wait_max: float = 30.0,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_wait_min = retry_wait_min
        self.retry_wait_max = retry_wait_max
        self.headers = {"User-Agent": user_agent, "Accept": accept}
        self.headers.update(default_headers or {})

        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "http"

    def _client_get(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(min=self.retry_wait_min, max=self.retry_wait_max),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def fetch(self, request: RequestSpec) -> FetchResult:
        client = self._client_get()
        timeout = self.timeout if request.timeout is None else request.timeout
        attempts = 0

        try:
            async for attempt in self._retrying():
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    started = time.perf_counter()
                    response = await client.get(
                        request.url,
                        headers=request.headers,
                        params=request.params or None,
                        timeout=timeout,
                    )
        except httpx.TransportError as e:
            raise FetchError(
                f"Transport error after {attempts} attempts: {e}",
                url=request.url,
                cause=e,
            ) from e

        if not response.is_success:
            raise FetchError(
                f"Fetch failed: {response.status_code}",
                url=request.url,
                status_code=response.status_code,
            )

        result = FetchResult(
            url=request.url,
            final_url=str(response.url),
            status_code=response.status_code,
            html=response.text,
            elapsed_ms=(time.perf_counter() - started) * 1000,
            retry_count=attempts - 1,
        )
        logger.debug(
            "GET %s -> %d (%d bytes, %.0f ms, %d retries)",
            result.final_url,
            result.status_code,
            result.content_length,
            result.elapsed_ms,
            result.retry_count,
            extra={"url": request.url, "source": request.source_name or "-"},
        )
        return result

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
