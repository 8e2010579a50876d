"""In-process history store used for demo mode and tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timedelta

from rapidfuzz import fuzz

from clipboard_panel.errors import StoreError
from clipboard_panel.models import HistoryPage, HistoryRecord

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
# partial_ratio score (0-100) a record must reach to match a keyword
KEYWORD_MATCH_THRESHOLD = 80


def keyword_matches(record: HistoryRecord, keyword: str) -> bool:
    """Case-insensitive substring or close partial match on the content."""
    needle = keyword.strip().lower()
    if not needle:
        return True
    haystack = (record.content or "").lower()
    if needle in haystack:
        return True
    return fuzz.partial_ratio(needle, haystack) >= KEYWORD_MATCH_THRESHOLD


class InMemoryHistoryStore:
    """Newest-first history held in a list; ids are assigned on capture."""

    def __init__(
        self,
        records: Iterable[HistoryRecord] = (),
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        supports_apply_to_active_app: bool = False,
    ) -> None:
        self._records: list[HistoryRecord] = list(records)
        self._listeners: list[Callable[[HistoryRecord], None]] = []
        self._next_id = max((r.id for r in self._records if r.id is not None), default=0) + 1
        self.page_size = page_size
        self.supports_apply_to_active_app = supports_apply_to_active_app
        self.applied: list[HistoryRecord] = []

    @property
    def records(self) -> list[HistoryRecord]:
        return list(self._records)

    def _find_index(self, record_id: int) -> int:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        raise StoreError(f"Clipboard item {record_id} not found")

    async def fetch_page(self, *, page: int, keyword: str | None = None) -> HistoryPage:
        matches = [r for r in self._records if not keyword or keyword_matches(r, keyword)]
        start = max(0, page - 1) * self.page_size
        return HistoryPage(
            records=tuple(matches[start : start + self.page_size]),
            page=page,
            page_size=self.page_size,
            total=len(matches),
        )

    async def set_favorite(self, *, record_id: int, is_favorite: bool) -> None:
        index = self._find_index(record_id)
        self._records[index] = replace(self._records[index], is_favorite=is_favorite)

    async def delete_item(self, *, record_id: int) -> None:
        del self._records[self._find_index(record_id)]

    async def clear_all(self) -> None:
        self._records.clear()

    async def apply_to_active_app(self, *, record: HistoryRecord, hide_window: bool = True) -> bool:
        if not self.supports_apply_to_active_app:
            raise StoreError("This store cannot paste into other applications")
        self.applied.append(record)
        return True

    def subscribe(self, on_change: Callable[[HistoryRecord], None]) -> Callable[[], None]:
        self._listeners.append(on_change)

        def unsubscribe() -> None:
            if on_change in self._listeners:
                self._listeners.remove(on_change)

        return unsubscribe

    def capture(
        self,
        content: str,
        *,
        type: str = "text",
        raw_content: object = None,
        timestamp: datetime | None = None,
    ) -> HistoryRecord:
        """Record a new clip at the top of the history and notify subscribers."""
        record = HistoryRecord(
            id=self._next_id,
            content=content,
            raw_content=raw_content,
            type=type,
            timestamp=timestamp or datetime.now(),
        )
        self._next_id += 1
        self._records.insert(0, record)
        self._notify(record)
        return record

    def _notify(self, record: HistoryRecord) -> None:
        for listener in list(self._listeners):
            try:
                listener(record)
            except Exception:
                logger.warning("Change listener failed for record %s", record.id, exc_info=True)


def build_sample_store(now: datetime | None = None) -> InMemoryHistoryStore:
    """Store pre-filled with a spread of clip kinds and ages for demo mode."""
    now = now or datetime.now()
    samples: list[tuple[str, str, object, timedelta, bool]] = [
        ("https://docs.python.org/3/library/asyncio.html", "url", None, timedelta(minutes=2), True),
        ("#3B82F6", "text", None, timedelta(minutes=15), False),
        ("842913", "text", None, timedelta(hours=1), False),
        ("jane.doe@example.com", "text", None, timedelta(hours=3), False),
        ('{"name": "clipboard-panel", "version": 1}', "text", None, timedelta(days=1), False),
        ("~/projects/clipboard-panel/README.md", "text", None, timedelta(days=2), False),
        (
            "Quarterly report",
            "text",
            "<p><strong>Quarterly</strong> report</p>",
            timedelta(days=4),
            True,
        ),
        (
            "def main():\n    return 0;\n",
            "text",
            None,
            timedelta(days=9),
            False,
        ),
        (
            "/home/jane/a.txt\n/home/jane/b.txt",
            "files",
            ["/home/jane/a.txt", "/home/jane/b.txt"],
            timedelta(days=40),
            False,
        ),
        ("192.168.1.24", "text", None, timedelta(days=120), False),
        ("data:image/png;base64,iVBORw0KGgo=", "image", None, timedelta(days=200), False),
    ]
    records = [
        HistoryRecord(
            id=len(samples) - index,
            content=content,
            raw_content=raw,
            type=base_type,
            is_favorite=favorite,
            timestamp=now - age,
        )
        for index, (content, base_type, raw, age, favorite) in enumerate(samples)
    ]
    return InMemoryHistoryStore(records, page_size=5, supports_apply_to_active_app=False)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "InMemoryHistoryStore",
    "build_sample_store",
    "keyword_matches",
]
