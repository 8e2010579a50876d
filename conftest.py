"""Shared test fixtures for clipboard panel tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from clipboard_panel.models import HistoryPage, HistoryRecord, PanelConfig
from clipboard_panel.widgets.listing import set_ascii_icons

# 2024-01-15T12:00:00Z in epoch milliseconds; higher ids are older
BASE_TIMESTAMP_MS = 1_705_320_000_000

# ── Module-level state isolation ─────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_icon_set():
    """Restore the Unicode icon set after each test.

    ClipboardPanelApp.__init__ switches the module-level icon set; without this
    fixture a test running with ascii_icons=True would leak into later tests.
    """
    yield
    set_ascii_icons(False)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_record():
    """Factory fixture for creating HistoryRecord instances with sensible defaults."""

    def _make(
        id: int | None = 1,
        content: str = "hello world",
        type: str = "text",
        raw_content: Any = None,
        is_favorite: bool = False,
        timestamp: Any = None,
    ) -> HistoryRecord:
        if timestamp is None and id is not None:
            timestamp = BASE_TIMESTAMP_MS - id * 60_000
        return HistoryRecord(
            id=id,
            content=content,
            raw_content=raw_content,
            type=type,
            is_favorite=is_favorite,
            timestamp=timestamp,
        )

    return _make


@pytest.fixture
def make_records(make_record):
    """Factory fixture for ``count`` records with ids ``start..start+count-1``."""

    def _make(count: int, start: int = 1) -> list[HistoryRecord]:
        return [make_record(id=i, content=f"clip {i}") for i in range(start, start + count)]

    return _make


@pytest.fixture
def make_page():
    """Factory fixture for HistoryPage results."""

    def _make(
        records: list[HistoryRecord] | tuple[HistoryRecord, ...] = (),
        *,
        page: int | None = 1,
        page_size: int | None = 10,
        total: int = 0,
    ) -> HistoryPage:
        return HistoryPage(records=tuple(records), page=page, page_size=page_size, total=total)

    return _make


@pytest.fixture
def fake_store():
    """AsyncMock history store with the apply capability switched off."""
    store = MagicMock()
    store.supports_apply_to_active_app = False
    store.fetch_page = AsyncMock(return_value=HistoryPage())
    store.set_favorite = AsyncMock(return_value=None)
    store.delete_item = AsyncMock(return_value=None)
    store.clear_all = AsyncMock(return_value=None)
    store.apply_to_active_app = AsyncMock(return_value=True)
    store.subscribe = MagicMock(return_value=MagicMock())
    return store


@pytest.fixture
def recording_ui():
    """UiBridge double that records every call."""
    ui = MagicMock()
    ui.ensure_visible = MagicMock()
    ui.show_error = MagicMock()
    return ui


@pytest.fixture
def sample_config():
    """Factory fixture for creating PanelConfig with optional overrides."""

    def _make(**kwargs: Any) -> PanelConfig:
        return PanelConfig(**kwargs)

    return _make
