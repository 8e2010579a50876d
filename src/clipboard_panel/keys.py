"""Stable record identity and timestamp helpers."""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from clipboard_panel.models import HistoryRecord

NO_TIMESTAMP_LABEL = "No timestamp"

_HASH_MODULUS = 2**32


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a record timestamp (datetime, epoch milliseconds, ISO string)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def to_timestamp_ms(value: Any) -> int:
    """Convert a record timestamp to epoch milliseconds (0 when unparseable)."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value) if math.isfinite(value) else 0
    parsed = parse_timestamp(value)
    if parsed is None:
        return 0
    return int(parsed.timestamp() * 1000)


def content_hash(text: str) -> int:
    """32-bit base-31 polynomial hash over UTF-16 code units."""
    encoded = text.encode("utf-16-le")
    value = 0
    for index in range(0, len(encoded), 2):
        code_unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + code_unit) % _HASH_MODULUS
    return value


def item_key(record: HistoryRecord) -> str:
    """Derive the session-stable identity of a record.

    Priority: store-assigned id, then capture timestamp, then content hash.
    A record re-keys from ``content-*``/``ts-*`` to ``id-*`` once the store
    assigns it an id.
    """
    if record.id is not None:
        return f"id-{record.id}"

    if record.timestamp:
        parsed = parse_timestamp(record.timestamp)
        if parsed is not None:
            return f"ts-{to_timestamp_ms(record.timestamp)}"

    return f"content-{content_hash(record.content or ''):x}"


def format_timestamp(value: Any) -> str:
    """Format a record timestamp as ``MM-DD HH:MM`` for list display."""
    if not value:
        return NO_TIMESTAMP_LABEL
    parsed = parse_timestamp(value)
    if parsed is None:
        return NO_TIMESTAMP_LABEL
    return parsed.strftime("%m-%d %H:%M")


__all__ = [
    "NO_TIMESTAMP_LABEL",
    "content_hash",
    "format_timestamp",
    "item_key",
    "parse_timestamp",
    "to_timestamp_ms",
]
