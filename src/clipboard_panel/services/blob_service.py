"""Resolve image record content (data URL or file reference) to bytes."""

from __future__ import annotations

import asyncio
import base64
import binascii
import mimetypes
import re
from pathlib import Path
from urllib.parse import quote, unquote_to_bytes, urlsplit
from urllib.request import url2pathname

import httpx

from clipboard_panel.errors import BlobResolveError
from clipboard_panel.models import Blob

DEFAULT_IMAGE_MIME = "image/png"

_PASSTHROUGH_SCHEME_PATTERN = re.compile(r"^(?:file|data|https?):", re.IGNORECASE)
_WINDOWS_PATH_PATTERN = re.compile(r"^[a-z]:[\\/]", re.IGNORECASE)
# Characters left unescaped when turning a path into a URL
_URL_SAFE_CHARS = "/:@!$&'()*+,;=~?"


def ensure_file_url(value: str | None) -> str:
    """Turn a file reference into a ``file://`` URL; URLs pass through."""
    trimmed = (value or "").strip()
    if not trimmed:
        return "file://"
    if _PASSTHROUGH_SCHEME_PATTERN.match(trimmed):
        return trimmed

    is_windows_path = _WINDOWS_PATH_PATTERN.match(trimmed) is not None
    normalized = trimmed.replace("\\", "/") if is_windows_path else trimmed
    encoded = quote(normalized, safe=_URL_SAFE_CHARS)
    if is_windows_path or encoded.startswith("/"):
        return f"file:///{encoded.lstrip('/')}"
    return f"file://{encoded}"


def decode_data_url(value: str) -> Blob:
    """Decode a ``data:`` URL (base64 or percent-encoded) into a blob."""
    header, sep, body = value.strip().partition(",")
    if not sep or not header.lower().startswith("data:"):
        raise BlobResolveError("Could not parse image content")
    params = header[5:].split(";")
    mime_type = params[0] or "text/plain"
    try:
        if any(param.lower() == "base64" for param in params[1:]):
            data = base64.b64decode(re.sub(r"\s+", "", body), validate=True)
        else:
            data = unquote_to_bytes(body)
    except (binascii.Error, ValueError) as exc:
        raise BlobResolveError("Could not parse image content", original_error=exc) from exc
    return Blob(data=data, mime_type=mime_type)


def _guess_mime(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or DEFAULT_IMAGE_MIME


async def read_file_url(url: str) -> Blob:
    path = Path(url2pathname(urlsplit(url).path))
    try:
        data = await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        raise BlobResolveError(f"Could not read image file {path}", original_error=exc) from exc
    return Blob(data=data, mime_type=_guess_mime(path.name))


async def fetch_url(
    url: str,
    *,
    client: httpx.AsyncClient | None,
    timeout_seconds: int,
) -> Blob:
    async def _get(active_client: httpx.AsyncClient) -> httpx.Response:
        return await active_client.get(url, timeout=timeout_seconds, follow_redirects=True)

    try:
        if client is not None:
            response = await _get(client)
        else:
            async with httpx.AsyncClient() as tmp_client:
                response = await _get(tmp_client)
    except httpx.HTTPError as exc:
        raise BlobResolveError(f"Could not read image data ({exc})", original_error=exc) from exc
    if response.is_error:
        raise BlobResolveError(f"Could not read image data ({response.status_code})")
    content_type = response.headers.get("content-type", "").split(";")[0].strip()
    return Blob(data=response.content, mime_type=content_type or _guess_mime(url))


class DefaultBlobResolver:
    """``BlobResolver`` over data URLs, local files and HTTP."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: int = 10,
    ) -> None:
        self.client = client
        self.timeout_seconds = timeout_seconds

    async def resolve(self, content: str) -> Blob:
        trimmed = (content or "").strip()
        if not trimmed:
            raise BlobResolveError("Could not parse image content")
        if trimmed.lower().startswith("data:"):
            return decode_data_url(trimmed)
        url = ensure_file_url(trimmed)
        if url.lower().startswith("file:"):
            return await read_file_url(url)
        return await fetch_url(url, client=self.client, timeout_seconds=self.timeout_seconds)


__all__ = [
    "DefaultBlobResolver",
    "decode_data_url",
    "ensure_file_url",
    "fetch_url",
    "read_file_url",
]
