"""Service interfaces + default adapters for panel dependency injection."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx

from clipboard_panel.models import Blob, HistoryPage, HistoryRecord, PanelConfig
from clipboard_panel.services.blob_service import DefaultBlobResolver
from clipboard_panel.services.channel_service import HttpRpcChannel
from clipboard_panel.services.clipboard_service import build_clipboard_writer
from clipboard_panel.services.http_store import HttpHistoryStore
from clipboard_panel.services.memory_store import build_sample_store

ChangeCallback = Callable[[HistoryRecord], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class HistoryStore(Protocol):
    """Interface for the remote clipboard history.

    ``supports_apply_to_active_app`` tags whether ``apply_to_active_app``
    is backed by the store; callers check the flag instead of probing.
    """

    supports_apply_to_active_app: bool

    async def fetch_page(self, *, page: int, keyword: str | None = None) -> HistoryPage:
        """Fetch one page of history, optionally filtered by keyword."""
        ...

    async def set_favorite(self, *, record_id: int, is_favorite: bool) -> None:
        """Persist the favorite flag of a record."""
        ...

    async def delete_item(self, *, record_id: int) -> None:
        """Delete one record."""
        ...

    async def clear_all(self) -> None:
        """Delete the whole history."""
        ...

    def subscribe(self, on_change: ChangeCallback) -> Unsubscribe:
        """Register a change callback; returns the unsubscribe function."""
        ...

    async def apply_to_active_app(self, *, record: HistoryRecord, hide_window: bool = True) -> bool:
        """Paste a record into the focused application."""
        ...


@runtime_checkable
class ClipboardWriter(Protocol):
    """Interface for system clipboard writes."""

    async def write_text(self, text: str) -> None: ...

    async def write_rich(self, *, html: str, text: str) -> None: ...

    async def write_image(self, blob: Blob) -> None: ...


@runtime_checkable
class RpcChannel(Protocol):
    """Interface for the generic host command channel."""

    async def send(self, command: str, payload: Mapping[str, Any] | None = None) -> Any: ...


@runtime_checkable
class BlobResolver(Protocol):
    """Interface resolving image content (data URL or file reference) to bytes."""

    async def resolve(self, content: str) -> Blob: ...


@runtime_checkable
class UiBridge(Protocol):
    """Side-effect port into the presentation layer."""

    def ensure_visible(self, key: str) -> None:
        """Scroll the row for ``key`` into view (no-op when not rendered)."""
        ...

    def show_error(self, message: str) -> None:
        """Surface a user-visible error (e.g. a toast)."""
        ...


class NullUiBridge:
    """UI bridge that ignores every side effect."""

    def ensure_visible(self, key: str) -> None:
        return None

    def show_error(self, message: str) -> None:
        return None


@dataclass(slots=True)
class PanelServices:
    """Aggregated collaborators consumed by the panel core.

    ``clipboard`` and ``channel`` are None when the environment lacks them.
    """

    store: HistoryStore
    blob_resolver: BlobResolver
    clipboard: ClipboardWriter | None = None
    channel: RpcChannel | None = None


def build_default_panel_services(
    config: PanelConfig,
    client: httpx.AsyncClient | None = None,
    *,
    demo: bool = False,
) -> PanelServices:
    """Build default services from config (HTTP store, or sample data in demo mode)."""
    timeout = config.request_timeout_seconds
    store: HistoryStore
    if demo:
        store = build_sample_store()
    else:
        store = HttpHistoryStore(
            base_url=config.store_url,
            client=client,
            timeout_seconds=timeout,
            supports_apply_to_active_app=config.apply_to_active_app,
        )
    channel = (
        HttpRpcChannel(rpc_url=config.rpc_url, client=client, timeout_seconds=timeout)
        if config.rpc_url
        else None
    )
    return PanelServices(
        store=store,
        blob_resolver=DefaultBlobResolver(client=client, timeout_seconds=timeout),
        clipboard=build_clipboard_writer(),
        channel=channel,
    )


__all__ = [
    "BlobResolver",
    "ChangeCallback",
    "ClipboardWriter",
    "HistoryStore",
    "NullUiBridge",
    "PanelServices",
    "RpcChannel",
    "UiBridge",
    "Unsubscribe",
    "build_default_panel_services",
]
