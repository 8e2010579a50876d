"""Data models and constants for the clipboard history panel."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from clipboard_panel.keys import item_key

# Application identity used for platformdirs config paths
CONFIG_APP_NAME = "clipboard-panel"

# Declared origin kinds of a history record
BASE_TYPES = ("text", "html", "richtext", "image", "file", "files", "url", "application")

# Classifier output categories
DERIVED_TYPES = (
    "empty",
    "color",
    "data-url-image",
    "data-url",
    "url",
    "email",
    "email-link",
    "phone",
    "ip-address",
    "verification-code",
    "file-uri",
    "file-path",
    "folder-path",
    "json",
    "html",
    "code",
    "text",
)

DEFAULT_MAX_PREVIEW_LENGTH = 120

# Operation names used as pending-flag guards
OPERATION_NAMES = (
    "apply",
    "copy",
    "favorite",
    "delete",
    "clear",
    "bulk_delete",
    "bulk_favorite",
)

RECORD_FIELDS = ("id", "content", "raw_content", "type", "is_favorite", "timestamp")

# Wire (camelCase) key -> record field
_WIRE_KEYS: dict[str, str] = {
    "id": "id",
    "content": "content",
    "rawContent": "raw_content",
    "raw_content": "raw_content",
    "type": "type",
    "isFavorite": "is_favorite",
    "is_favorite": "is_favorite",
    "timestamp": "timestamp",
}


@dataclass(frozen=True, slots=True)
class HistoryRecord:
    """One clipboard entry as known to the client.

    ``provided`` names the fields the source payload actually carried, so an
    overlay of a partial update never erases values it did not mention.
    """

    id: int | None = None
    content: str = ""
    raw_content: Any = None
    type: str = "text"
    is_favorite: bool = False
    timestamp: datetime | float | str | None = None
    provided: frozenset[str] = field(
        default=frozenset(RECORD_FIELDS), compare=False, repr=False
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HistoryRecord:
        """Build a record from a store payload (camelCase or snake_case keys)."""
        values: dict[str, Any] = {}
        for wire_key, value in data.items():
            name = _WIRE_KEYS.get(wire_key)
            if name is not None:
                values[name] = value
        if "id" in values and values["id"] is not None:
            try:
                values["id"] = int(values["id"])
            except (TypeError, ValueError):
                values["id"] = None
        if "content" in values and not isinstance(values["content"], str):
            values["content"] = "" if values["content"] is None else str(values["content"])
        if "is_favorite" in values:
            values["is_favorite"] = bool(values["is_favorite"])
        if "type" in values and not isinstance(values["type"], str):
            values["type"] = "text"
        return cls(**values, provided=frozenset(values))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the store's camelCase wire form."""
        timestamp = self.timestamp
        if isinstance(timestamp, datetime):
            timestamp = timestamp.isoformat()
        return {
            "id": self.id,
            "content": self.content,
            "rawContent": self.raw_content,
            "type": self.type,
            "isFavorite": self.is_favorite,
            "timestamp": timestamp,
        }


@dataclass(frozen=True, slots=True)
class HistoryPage:
    """One page of history as returned by the store."""

    records: tuple[HistoryRecord, ...] = ()
    page: int | None = None
    page_size: int | None = None
    total: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HistoryPage:
        raw_records = data.get("history")
        records = tuple(
            HistoryRecord.from_dict(entry)
            for entry in (raw_records if isinstance(raw_records, list) else [])
            if isinstance(entry, Mapping)
        )
        page = data.get("page")
        page_size = data.get("pageSize", data.get("page_size"))
        total = data.get("total")
        return cls(
            records=records,
            page=page if isinstance(page, int) and not isinstance(page, bool) else None,
            page_size=(
                page_size
                if isinstance(page_size, int) and not isinstance(page_size, bool)
                else None
            ),
            total=total if isinstance(total, int) and not isinstance(total, bool) else 0,
        )


@dataclass(frozen=True, slots=True)
class ListState:
    """The client's materialized window over the remote history."""

    items: tuple[HistoryRecord, ...] = ()
    page: int = 1
    page_size: int = 0
    total: int = 0
    exhausted: bool = False

    @property
    def can_load_more(self) -> bool:
        return not self.exhausted and len(self.items) < self.total


@dataclass(frozen=True, slots=True)
class SelectionState:
    """Current selection and multi-selection, derived from ``ListState.items``."""

    selected_key: str | None = None
    selected_item: HistoryRecord | None = None
    multi_selected_keys: tuple[str, ...] = ()
    multi_select_mode: bool = False


@dataclass(frozen=True, slots=True)
class PanelState:
    """Single mutable-by-replacement state block of the panel."""

    listing: ListState = field(default_factory=ListState)
    selection: SelectionState = field(default_factory=SelectionState)
    is_loading: bool = False
    is_loading_more: bool = False
    pending: frozenset[str] = frozenset()
    error_message: str | None = None

    @property
    def items(self) -> tuple[HistoryRecord, ...]:
        return self.listing.items

    @property
    def active_index(self) -> int:
        """Index of the selected record in ``items``, or -1."""
        key = self.selection.selected_key
        if key is None:
            return -1
        for index, record in enumerate(self.listing.items):
            if item_key(record) == key:
                return index
        return -1

    @property
    def multi_selected_items(self) -> list[HistoryRecord]:
        keys = set(self.selection.multi_selected_keys)
        if not keys:
            return []
        return [record for record in self.listing.items if item_key(record) in keys]

    @property
    def multi_selected_count(self) -> int:
        return len(self.selection.multi_selected_keys)

    def is_pending(self, operation: str) -> bool:
        return operation in self.pending


@dataclass(frozen=True, slots=True)
class ContentMeta:
    """One (label, value) metadata pair of a classification."""

    label: str
    value: str


@dataclass(frozen=True, slots=True)
class ContentInfo:
    """Display descriptor derived from raw clipboard content."""

    content: str
    type: str
    label: str
    icon: str
    preview_text: str
    base_type: str | None = None
    secondary_text: str | None = None
    href: str | None = None
    color_swatch: str | None = None
    meta: tuple[ContentMeta, ...] = ()

    def meta_value(self, label: str) -> str | None:
        """Return the first meta value with ``label``, if any."""
        for entry in self.meta:
            if entry.label == label:
                return entry.value
        return None


@dataclass(frozen=True, slots=True)
class Blob:
    """Binary clipboard payload (used for image copy)."""

    data: bytes
    mime_type: str = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class KeyPress:
    """Framework-neutral key event routed to panel hotkeys."""

    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    alt: bool = False

    @property
    def command(self) -> bool:
        """Ctrl on Linux/Windows or Cmd on macOS."""
        return self.ctrl or self.meta


@dataclass(slots=True)
class PanelConfig:
    """User configuration for the panel."""

    store_url: str = ""
    rpc_url: str = ""
    request_timeout_seconds: int = 10
    max_preview_length: int = DEFAULT_MAX_PREVIEW_LENGTH
    ascii_icons: bool = False
    hide_after_paste: bool = True
    apply_to_active_app: bool = False  # Store exposes POST /apply
    version: int = 1


__all__ = [
    "BASE_TYPES",
    "CONFIG_APP_NAME",
    "DEFAULT_MAX_PREVIEW_LENGTH",
    "DERIVED_TYPES",
    "OPERATION_NAMES",
    "RECORD_FIELDS",
    "Blob",
    "ContentInfo",
    "ContentMeta",
    "HistoryPage",
    "HistoryRecord",
    "KeyPress",
    "ListState",
    "PanelConfig",
    "PanelState",
    "SelectionState",
]
