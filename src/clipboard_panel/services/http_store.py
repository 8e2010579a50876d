"""History store backed by a JSON HTTP API.

Endpoints (relative to the store base URL):

    GET    /history?page=N&keyword=K   -> {history, page, pageSize, total}
    POST   /history/{id}/favorite      {isFavorite}
    DELETE /history/{id}
    DELETE /history
    POST   /apply                      {item, hideWindow} -> {success, message}
    GET    /history/events             NDJSON stream, one record per line
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar

import httpx

from clipboard_panel.errors import ApplyFailedError, StoreError
from clipboard_panel.models import HistoryPage, HistoryRecord

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10
DEFAULT_RECONNECT_DELAY_SECONDS = 3.0
APPLY_FAILED_MESSAGE = "Paste into the active app failed"

_T = TypeVar("_T")


def apply_failure(payload: Any) -> ApplyFailedError | None:
    """Return the error for an explicit ``{"success": false}`` response, else None."""
    if not isinstance(payload, dict) or "success" not in payload or payload["success"]:
        return None
    message = payload.get("message")
    if not isinstance(message, str) or not message:
        message = APPLY_FAILED_MESSAGE
    return ApplyFailedError(message)


def _url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


async def _with_client(
    client: httpx.AsyncClient | None,
    call: Callable[[httpx.AsyncClient], Awaitable[_T]],
) -> _T:
    """Run ``call`` on ``client``, or on a temporary client when None."""
    if client is not None:
        return await call(client)
    async with httpx.AsyncClient() as tmp_client:
        return await call(tmp_client)


def _store_error(action: str, exc: httpx.HTTPError) -> StoreError:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        reason = exc.response.reason_phrase or "error"
        return StoreError(f"Failed to {action}: HTTP {status} {reason}", original_error=exc)
    return StoreError(f"Failed to {action}: {exc or type(exc).__name__}", original_error=exc)


async def fetch_history_page(
    *,
    client: httpx.AsyncClient | None,
    base_url: str,
    page: int,
    keyword: str | None = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> HistoryPage:
    """Fetch one page of clipboard history."""
    params: dict[str, Any] = {"page": page}
    if keyword:
        params["keyword"] = keyword

    async def _fetch(active_client: httpx.AsyncClient) -> HistoryPage:
        response = await active_client.get(
            _url(base_url, "history"), params=params, timeout=timeout_seconds
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise StoreError("Failed to load history: unexpected response shape")
        return HistoryPage.from_dict(payload)

    try:
        return await _with_client(client, _fetch)
    except httpx.HTTPError as exc:
        raise _store_error("load history", exc) from exc
    except ValueError as exc:
        raise StoreError(
            f"Failed to load history: invalid JSON ({exc})", original_error=exc
        ) from exc


async def set_favorite(
    *,
    client: httpx.AsyncClient | None,
    base_url: str,
    record_id: int,
    is_favorite: bool,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> None:
    async def _post(active_client: httpx.AsyncClient) -> None:
        response = await active_client.post(
            _url(base_url, f"history/{record_id}/favorite"),
            json={"isFavorite": is_favorite},
            timeout=timeout_seconds,
        )
        response.raise_for_status()

    try:
        await _with_client(client, _post)
    except httpx.HTTPError as exc:
        raise _store_error("update favorite", exc) from exc


async def delete_item(
    *,
    client: httpx.AsyncClient | None,
    base_url: str,
    record_id: int,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> None:
    async def _delete(active_client: httpx.AsyncClient) -> None:
        response = await active_client.delete(
            _url(base_url, f"history/{record_id}"), timeout=timeout_seconds
        )
        response.raise_for_status()

    try:
        await _with_client(client, _delete)
    except httpx.HTTPError as exc:
        raise _store_error("delete item", exc) from exc


async def clear_all(
    *,
    client: httpx.AsyncClient | None,
    base_url: str,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> None:
    async def _delete(active_client: httpx.AsyncClient) -> None:
        response = await active_client.delete(_url(base_url, "history"), timeout=timeout_seconds)
        response.raise_for_status()

    try:
        await _with_client(client, _delete)
    except httpx.HTTPError as exc:
        raise _store_error("clear history", exc) from exc


async def apply_to_active_app(
    *,
    client: httpx.AsyncClient | None,
    base_url: str,
    record: HistoryRecord,
    hide_window: bool = True,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> bool:
    """Ask the store host to paste ``record`` into the focused application."""

    async def _post(active_client: httpx.AsyncClient) -> Any:
        response = await active_client.post(
            _url(base_url, "apply"),
            json={"item": record.to_dict(), "hideWindow": hide_window},
            timeout=timeout_seconds,
        )
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    try:
        payload = await _with_client(client, _post)
    except httpx.HTTPError as exc:
        raise _store_error("paste into the active app", exc) from exc
    except ValueError as exc:
        raise ApplyFailedError(APPLY_FAILED_MESSAGE, original_error=exc) from exc

    failure = apply_failure(payload)
    if failure is not None:
        raise failure
    if isinstance(payload, bool):
        return payload
    return True


async def stream_changes(
    *,
    client: httpx.AsyncClient,
    base_url: str,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> AsyncIterator[HistoryRecord]:
    """Yield records from the NDJSON change stream until it closes."""
    timeout = httpx.Timeout(timeout_seconds, read=None)
    async with client.stream("GET", _url(base_url, "history/events"), timeout=timeout) as response:
        response.raise_for_status()
        async for line in response.aiter_lines():
            if not line.strip():
                continue
            try:
                payload = json.loads(line)
            except ValueError:
                logger.debug("Skipping malformed change line: %r", line[:200])
                continue
            if isinstance(payload, dict) and isinstance(payload.get("item"), dict):
                payload = payload["item"]
            if isinstance(payload, dict):
                yield HistoryRecord.from_dict(payload)


class HttpHistoryStore:
    """``HistoryStore`` adapter over the function-based HTTP helpers."""

    def __init__(
        self,
        *,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        supports_apply_to_active_app: bool = False,
        reconnect_delay_seconds: float = DEFAULT_RECONNECT_DELAY_SECONDS,
    ) -> None:
        self.base_url = base_url
        self.client = client
        self.timeout_seconds = timeout_seconds
        self.supports_apply_to_active_app = supports_apply_to_active_app
        self.reconnect_delay_seconds = reconnect_delay_seconds

    async def fetch_page(self, *, page: int, keyword: str | None = None) -> HistoryPage:
        return await fetch_history_page(
            client=self.client,
            base_url=self.base_url,
            page=page,
            keyword=keyword,
            timeout_seconds=self.timeout_seconds,
        )

    async def set_favorite(self, *, record_id: int, is_favorite: bool) -> None:
        await set_favorite(
            client=self.client,
            base_url=self.base_url,
            record_id=record_id,
            is_favorite=is_favorite,
            timeout_seconds=self.timeout_seconds,
        )

    async def delete_item(self, *, record_id: int) -> None:
        await delete_item(
            client=self.client,
            base_url=self.base_url,
            record_id=record_id,
            timeout_seconds=self.timeout_seconds,
        )

    async def clear_all(self) -> None:
        await clear_all(
            client=self.client, base_url=self.base_url, timeout_seconds=self.timeout_seconds
        )

    async def apply_to_active_app(self, *, record: HistoryRecord, hide_window: bool = True) -> bool:
        return await apply_to_active_app(
            client=self.client,
            base_url=self.base_url,
            record=record,
            hide_window=hide_window,
            timeout_seconds=self.timeout_seconds,
        )

    async def _follow_changes(self, on_change: Callable[[HistoryRecord], None]) -> None:
        while True:
            try:
                await _with_client(self.client, lambda c: self._pump(c, on_change))
                logger.info("Change stream closed by the store; reconnecting")
            except httpx.HTTPError:
                logger.warning(
                    "Change stream failed; retrying in %.1fs",
                    self.reconnect_delay_seconds,
                    exc_info=True,
                )
            await asyncio.sleep(self.reconnect_delay_seconds)

    async def _pump(
        self, client: httpx.AsyncClient, on_change: Callable[[HistoryRecord], None]
    ) -> None:
        async for record in stream_changes(
            client=client, base_url=self.base_url, timeout_seconds=self.timeout_seconds
        ):
            on_change(record)

    def subscribe(self, on_change: Callable[[HistoryRecord], None]) -> Callable[[], None]:
        """Follow the change stream in a background task until unsubscribed."""
        task = asyncio.get_running_loop().create_task(self._follow_changes(on_change))

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe


__all__ = [
    "APPLY_FAILED_MESSAGE",
    "HttpHistoryStore",
    "apply_failure",
    "apply_to_active_app",
    "clear_all",
    "delete_item",
    "fetch_history_page",
    "set_favorite",
    "stream_changes",
]
