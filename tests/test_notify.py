"""Tests for message building, transports and dispatch."""

from __future__ import annotations

import json

import httpx
import pytest

from stockwatch.core.backends.base import PushError
from stockwatch.core.matching import Subscription
from stockwatch.core.notify import (
    DispatchResult,
    ExpoPushTransport,
    LogPushTransport,
    NotificationMessage,
    build_messages,
    build_test_messages,
    dedupe_messages,
    dispatch,
    format_notification,
    send_test_push,
)

PUSH_URL = "https://push.example.test/send"


class TestFormatNotification:
    def test_full_event(self, make_event):
        event = make_event()

        title, body, data = format_notification(event)

        assert title == "Stocked: RAINBOW TROUT"
        assert body == 'Blue Lake (WASATCH) — 1,200 fish • 10.5" avg — 2026-03-04'
        assert data == {"eventId": event.id}

    def test_missing_quantity_and_length(self, make_event):
        _, body, _ = format_notification(make_event(quantity=None, avg_length=None))

        assert body == "Blue Lake (WASATCH) — Fish stocked — 2026-03-04"

    def test_zero_quantity_reads_fish_stocked(self, make_event):
        _, body, _ = format_notification(make_event(quantity=0, avg_length=8.0))

        assert body == 'Blue Lake (WASATCH) — Fish stocked • 8" avg — 2026-03-04'


class TestMessages:
    def test_build_one_message_per_pair(self, make_event):
        event = make_event()
        subs = [Subscription(token="A"), Subscription(token="B")]

        messages = build_messages([(event, sub) for sub in subs])

        assert [m.to for m in messages] == ["A", "B"]
        assert messages[0].to_payload() == {
            "to": "A",
            "sound": "default",
            "title": "Stocked: RAINBOW TROUT",
            "body": 'Blue Lake (WASATCH) — 1,200 fish • 10.5" avg — 2026-03-04',
            "data": {"eventId": event.id},
        }

    def test_dedupe_last_wins_first_position(self):
        messages = [
            NotificationMessage(to="A", title="1", body="first", data={"eventId": "e1"}),
            NotificationMessage(to="B", title="2", body="other", data={"eventId": "e1"}),
            NotificationMessage(to="A", title="3", body="last", data={"eventId": "e1"}),
            NotificationMessage(to="A", title="4", body="new", data={"eventId": "e2"}),
        ]

        result = dedupe_messages(messages)

        assert [(m.to, m.body) for m in result] == [("A", "last"), ("B", "other"), ("A", "new")]

    def test_test_messages_skip_placeholder_tokens(self):
        subs = [
            Subscription(token="ExponentPushToken[real]"),
            Subscription(token="ExponentPushToken[TESTTOKEN-1]"),
            Subscription(token=""),
        ]

        messages = build_test_messages(subs)

        assert [m.to for m in messages] == ["ExponentPushToken[real]"]
        assert messages[0].data == {"kind": "test"}


class TestExpoPushTransport:
    async def test_posts_batch(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["method"] = request.method
            seen["payload"] = json.loads(request.content)
            return httpx.Response(200, json={"data": [{"status": "ok"}]})

        messages = [
            NotificationMessage(to="A", title="t", body="b", data={"eventId": "e1"}),
            NotificationMessage(to="B", title="t", body="b", data={"eventId": "e1"}),
        ]

        async with ExpoPushTransport(url=PUSH_URL, transport=httpx.MockTransport(handler)) as transport:
            response = await transport.send(messages)

        assert seen["method"] == "POST"
        assert seen["url"] == PUSH_URL
        assert [item["to"] for item in seen["payload"]] == ["A", "B"]
        assert response.status_code == 200
        assert response.data == {"data": [{"status": "ok"}]}

    async def test_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text="bad request")

        transport = ExpoPushTransport(url=PUSH_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(PushError) as exc_info:
            await transport.send([NotificationMessage(to="A", title="t", body="b")])
        await transport.close()

        assert exc_info.value.status_code == 400
        assert exc_info.value.body == "bad request"

    async def test_connection_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = ExpoPushTransport(url=PUSH_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(PushError):
            await transport.send([NotificationMessage(to="A", title="t", body="b")])
        await transport.close()

    async def test_non_json_body_tolerated(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="ok")

        transport = ExpoPushTransport(url=PUSH_URL, transport=httpx.MockTransport(handler))
        response = await transport.send([NotificationMessage(to="A", title="t", body="b")])
        await transport.close()

        assert response.data == {}


class TestDispatch:
    async def test_empty_batch_makes_no_call(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={})

        transport = ExpoPushTransport(url=PUSH_URL, transport=httpx.MockTransport(handler))
        result = await dispatch([], transport)
        await transport.close()

        assert calls == []
        assert result == DispatchResult(sent=0, response=None)

    async def test_single_call_for_batch(self):
        transport = LogPushTransport()
        messages = [
            NotificationMessage(to="A", title="t", body="b"),
            NotificationMessage(to="B", title="t", body="b"),
        ]

        result = await dispatch(messages, transport)

        assert result.sent == 2
        assert result.response == {"dryRun": True, "count": 2}
        assert transport.sent == messages

    async def test_send_test_push(self):
        transport = LogPushTransport()
        subs = [Subscription(token="REAL"), Subscription(token="TESTTOKEN")]

        result = await send_test_push(subs, transport)

        assert result.sent == 1
        assert [m.to for m in transport.sent] == ["REAL"]

    async def test_send_test_push_without_real_tokens(self):
        transport = LogPushTransport()

        result = await send_test_push([Subscription(token="TESTTOKEN")], transport)

        assert result.sent == 0
        assert transport.sent == []
