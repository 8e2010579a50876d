"""Tests for the HTTP history store and host RPC channel."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from clipboard_panel.errors import ApplyFailedError, StoreError
from clipboard_panel.models import HistoryRecord
from clipboard_panel.services.channel_service import HttpRpcChannel, send_command
from clipboard_panel.services.http_store import (
    APPLY_FAILED_MESSAGE,
    HttpHistoryStore,
    apply_failure,
    apply_to_active_app,
    clear_all,
    delete_item,
    fetch_history_page,
    set_favorite,
    stream_changes,
)

BASE_URL = "http://store.test/api/"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class RecordingHandler:
    """MockTransport handler that records requests and replies with a canned response."""

    def __init__(self, status_code: int = 204, **kwargs) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.kwargs = kwargs

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, **self.kwargs)


# ── fetch_history_page ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fetch_history_page_sends_page_and_keyword() -> None:
    handler = RecordingHandler(
        200,
        json={
            "history": [
                {"id": 7, "content": "hello", "type": "text", "isFavorite": True},
                "not a record",
            ],
            "page": 2,
            "pageSize": 10,
            "total": 11,
        },
    )
    async with _client(handler) as client:
        page = await fetch_history_page(client=client, base_url=BASE_URL, page=2, keyword="hel")

    request = handler.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/api/history"
    assert request.url.params["page"] == "2"
    assert request.url.params["keyword"] == "hel"
    assert [r.id for r in page.records] == [7]
    assert page.records[0].is_favorite is True
    assert (page.page, page.page_size, page.total) == (2, 10, 11)


@pytest.mark.asyncio
async def test_fetch_history_page_omits_empty_keyword() -> None:
    handler = RecordingHandler(200, json={"history": []})
    async with _client(handler) as client:
        await fetch_history_page(client=client, base_url=BASE_URL, page=1, keyword="")
    assert "keyword" not in handler.requests[0].url.params


@pytest.mark.asyncio
async def test_fetch_history_page_http_error_becomes_store_error() -> None:
    handler = RecordingHandler(500)
    async with _client(handler) as client:
        with pytest.raises(StoreError, match="HTTP 500 Internal Server Error") as exc_info:
            await fetch_history_page(client=client, base_url=BASE_URL, page=1)
    assert isinstance(exc_info.value.original_error, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_fetch_history_page_invalid_json() -> None:
    handler = RecordingHandler(200, content=b"<html>")
    async with _client(handler) as client:
        with pytest.raises(StoreError, match="invalid JSON"):
            await fetch_history_page(client=client, base_url=BASE_URL, page=1)


@pytest.mark.asyncio
async def test_fetch_history_page_rejects_non_object_payload() -> None:
    handler = RecordingHandler(200, json=[1, 2])
    async with _client(handler) as client:
        with pytest.raises(StoreError, match="unexpected response shape"):
            await fetch_history_page(client=client, base_url=BASE_URL, page=1)


@pytest.mark.asyncio
async def test_fetch_history_page_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(StoreError, match="connection refused"):
            await fetch_history_page(client=client, base_url=BASE_URL, page=1)


# ── mutations ───────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_set_favorite_posts_flag() -> None:
    handler = RecordingHandler()
    async with _client(handler) as client:
        await set_favorite(client=client, base_url=BASE_URL, record_id=3, is_favorite=True)

    request = handler.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/api/history/3/favorite"
    assert json.loads(request.content) == {"isFavorite": True}


@pytest.mark.asyncio
async def test_delete_item_and_clear_all() -> None:
    handler = RecordingHandler()
    async with _client(handler) as client:
        await delete_item(client=client, base_url=BASE_URL, record_id=9)
        await clear_all(client=client, base_url=BASE_URL)

    assert [(r.method, r.url.path) for r in handler.requests] == [
        ("DELETE", "/api/history/9"),
        ("DELETE", "/api/history"),
    ]


@pytest.mark.asyncio
async def test_delete_item_not_found() -> None:
    handler = RecordingHandler(404)
    async with _client(handler) as client:
        with pytest.raises(StoreError, match="Failed to delete item: HTTP 404"):
            await delete_item(client=client, base_url=BASE_URL, record_id=9)


# ── apply_to_active_app ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_apply_posts_record_and_hide_flag() -> None:
    handler = RecordingHandler(200, json={"success": True})
    record = HistoryRecord(id=4, content="paste me", type="text", is_favorite=True)
    async with _client(handler) as client:
        result = await apply_to_active_app(
            client=client, base_url=BASE_URL, record=record, hide_window=False
        )

    assert result is True
    body = json.loads(handler.requests[0].content)
    assert body["hideWindow"] is False
    assert body["item"]["id"] == 4
    assert body["item"]["isFavorite"] is True


@pytest.mark.asyncio
async def test_apply_empty_body_counts_as_success() -> None:
    handler = RecordingHandler(204)
    async with _client(handler) as client:
        assert await apply_to_active_app(
            client=client, base_url=BASE_URL, record=HistoryRecord(id=1)
        )


@pytest.mark.asyncio
async def test_apply_boolean_reply_passes_through() -> None:
    handler = RecordingHandler(200, json=False)
    async with _client(handler) as client:
        assert (
            await apply_to_active_app(client=client, base_url=BASE_URL, record=HistoryRecord(id=1))
            is False
        )


@pytest.mark.asyncio
async def test_apply_failure_uses_store_message() -> None:
    handler = RecordingHandler(200, json={"success": False, "message": "No focused window"})
    async with _client(handler) as client:
        with pytest.raises(ApplyFailedError, match="No focused window"):
            await apply_to_active_app(client=client, base_url=BASE_URL, record=HistoryRecord(id=1))


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"success": False}, APPLY_FAILED_MESSAGE),
        ({"success": False, "message": ""}, APPLY_FAILED_MESSAGE),
        ({"success": 0, "message": "Denied"}, "Denied"),
    ],
)
def test_apply_failure_messages(payload, expected) -> None:
    failure = apply_failure(payload)
    assert isinstance(failure, ApplyFailedError)
    assert str(failure) == expected


@pytest.mark.parametrize("payload", [None, True, "ok", {"success": True}, {"message": "hi"}])
def test_apply_failure_ignores_non_failures(payload) -> None:
    assert apply_failure(payload) is None


# ── change stream ───────────────────────────────────────────────────────────


NDJSON_BODY = b"\n".join(
    [
        b'{"id": 1, "content": "first"}',
        b"",
        b"not json",
        b'{"item": {"id": 2, "content": "second", "isFavorite": true}}',
        b"[1, 2]",
        b'{"content": "partial"}',
    ]
)


@pytest.mark.asyncio
async def test_stream_changes_parses_ndjson() -> None:
    handler = RecordingHandler(200, content=NDJSON_BODY)
    async with _client(handler) as client:
        records = [r async for r in stream_changes(client=client, base_url=BASE_URL)]

    assert handler.requests[0].url.path == "/api/history/events"
    assert [(r.id, r.content) for r in records] == [
        (1, "first"),
        (2, "second"),
        (None, "partial"),
    ]
    assert records[1].is_favorite is True
    assert records[2].provided == frozenset({"content"})


@pytest.mark.asyncio
async def test_stream_changes_raises_on_http_error() -> None:
    handler = RecordingHandler(503)
    async with _client(handler) as client:
        with pytest.raises(httpx.HTTPStatusError):
            async for _ in stream_changes(client=client, base_url=BASE_URL):
                pass


# ── HttpHistoryStore adapter ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_http_store_adapter_routes_calls() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"history": [{"id": 5}], "total": 1})
        return httpx.Response(204)

    async with _client(handler) as client:
        store = HttpHistoryStore(base_url=BASE_URL, client=client)
        page = await store.fetch_page(page=1)
        await store.set_favorite(record_id=5, is_favorite=False)
        await store.delete_item(record_id=5)
        await store.clear_all()

    assert [r.id for r in page.records] == [5]
    assert store.supports_apply_to_active_app is False


@pytest.mark.asyncio
async def test_http_store_subscribe_delivers_changes_until_unsubscribed() -> None:
    handler = RecordingHandler(200, content=b'{"id": 1, "content": "x"}\n')
    received: list[HistoryRecord] = []
    got_one = asyncio.Event()

    def on_change(record: HistoryRecord) -> None:
        received.append(record)
        got_one.set()

    async with _client(handler) as client:
        store = HttpHistoryStore(base_url=BASE_URL, client=client, reconnect_delay_seconds=0)
        unsubscribe = store.subscribe(on_change)
        await asyncio.wait_for(got_one.wait(), timeout=2)
        unsubscribe()
        await asyncio.sleep(0)

    assert received[0].id == 1


# ── RPC channel ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_send_command_posts_payload_and_decodes_reply() -> None:
    handler = RecordingHandler(200, json={"success": True})
    async with _client(handler) as client:
        reply = await send_command(
            client=client, rpc_url="http://host.test/rpc/", command="hide", payload={"a": 1}
        )

    assert reply == {"success": True}
    assert handler.requests[0].url.path == "/rpc/hide"
    assert json.loads(handler.requests[0].content) == {"a": 1}


@pytest.mark.asyncio
async def test_send_command_returns_text_for_non_json_reply() -> None:
    handler = RecordingHandler(200, text="ok")
    async with _client(handler) as client:
        assert await send_command(client=client, rpc_url="http://h", command="hide") == "ok"


@pytest.mark.asyncio
async def test_send_command_empty_reply_is_none() -> None:
    handler = RecordingHandler(204)
    async with _client(handler) as client:
        channel = HttpRpcChannel(rpc_url="http://h", client=client)
        assert await channel.send("hide") is None


@pytest.mark.asyncio
async def test_send_command_http_error() -> None:
    handler = RecordingHandler(502)
    async with _client(handler) as client:
        with pytest.raises(StoreError, match="RPC hide failed"):
            await send_command(client=client, rpc_url="http://h", command="hide")
