"""Tests for the HTTP fetch backend."""

from __future__ import annotations

import httpx
import pytest

from stockwatch.core.backends import FetchError, HttpBackend, RequestSpec

URL = "https://reports.example.test/fish"


def _backend(handler, **kwargs) -> HttpBackend:
    return HttpBackend(
        transport=httpx.MockTransport(handler),
        retry_wait_min=0,
        retry_wait_max=0,
        **kwargs,
    )


async def test_fetch_sends_headers_and_params():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="<table></table>")

    async with _backend(handler, user_agent="Default/1") as backend:
        result = await backend.fetch(
            RequestSpec(
                url=URL,
                headers={"User-Agent": "FishStockAlerts/0.1", "Accept": "text/html"},
                params={"y": "2026"},
            )
        )

    (request,) = seen
    assert request.headers["User-Agent"] == "FishStockAlerts/0.1"
    assert request.headers["Accept"] == "text/html"
    assert request.url.params["y"] == "2026"
    assert result.ok
    assert result.html == "<table></table>"
    assert result.retry_count == 0


async def test_non_2xx_raises_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="missing")

    async with _backend(handler) as backend:
        with pytest.raises(FetchError) as exc_info:
            await backend.fetch(RequestSpec(url=URL))

    assert exc_info.value.status_code == 404
    assert exc_info.value.url == URL


async def test_transport_errors_retried():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) < 3:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, text="ok")

    async with _backend(handler, max_retries=3) as backend:
        result = await backend.fetch(RequestSpec(url=URL))

    assert len(attempts) == 3
    assert result.retry_count == 2


async def test_transport_errors_exhausted():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("refused", request=request)

    async with _backend(handler, max_retries=2) as backend:
        with pytest.raises(FetchError) as exc_info:
            await backend.fetch(RequestSpec(url=URL))

    assert len(attempts) == 2
    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.cause, httpx.ConnectError)


async def test_server_errors_not_retried():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(500)

    async with _backend(handler) as backend:
        with pytest.raises(FetchError):
            await backend.fetch(RequestSpec(url=URL))

    assert len(attempts) == 1
