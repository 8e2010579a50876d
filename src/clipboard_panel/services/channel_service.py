"""Host RPC channel over HTTP (apply-to-app fallback and window hide)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from clipboard_panel.errors import StoreError

logger = logging.getLogger(__name__)

APPLY_COMMAND = "clipboard:apply-to-active-app"
HIDE_COMMAND = "hide"


async def send_command(
    *,
    client: httpx.AsyncClient | None,
    rpc_url: str,
    command: str,
    payload: Mapping[str, Any] | None = None,
    timeout_seconds: int = 10,
) -> Any:
    """POST ``payload`` to ``{rpc_url}/{command}`` and return the decoded reply."""
    url = f"{rpc_url.rstrip('/')}/{command}"

    async def _post(active_client: httpx.AsyncClient) -> httpx.Response:
        return await active_client.post(url, json=dict(payload or {}), timeout=timeout_seconds)

    try:
        if client is not None:
            response = await _post(client)
        else:
            async with httpx.AsyncClient() as tmp_client:
                response = await _post(tmp_client)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise StoreError(f"RPC {command} failed: {exc}", original_error=exc) from exc

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        logger.debug("RPC %s returned non-JSON body", command)
        return response.text


class HttpRpcChannel:
    """``RpcChannel`` adapter posting commands to a host endpoint."""

    def __init__(
        self,
        *,
        rpc_url: str,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: int = 10,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = client
        self.timeout_seconds = timeout_seconds

    async def send(self, command: str, payload: Mapping[str, Any] | None = None) -> Any:
        return await send_command(
            client=self.client,
            rpc_url=self.rpc_url,
            command=command,
            payload=payload,
            timeout_seconds=self.timeout_seconds,
        )


__all__ = ["APPLY_COMMAND", "HIDE_COMMAND", "HttpRpcChannel", "send_command"]
