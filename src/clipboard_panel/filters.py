"""Type filters over the materialized history list."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from clipboard_panel.models import HistoryRecord

FILTER_VALUES = ("all", "favorites", "text", "image", "files", "url", "application")
FILTER_LABELS: dict[str, str] = {
    "all": "All",
    "favorites": "Favorites",
    "text": "Text",
    "image": "Images",
    "files": "Files",
    "url": "Links",
    "application": "Apps",
}

_FILE_TYPES = frozenset({"file", "files"})


def filter_counts(items: Iterable[HistoryRecord]) -> dict[str, int]:
    """Count records per filter value (``all`` counts everything)."""
    counts = dict.fromkeys(FILTER_VALUES, 0)
    for record in items:
        counts["all"] += 1
        if record.is_favorite:
            counts["favorites"] += 1
        if record.type in _FILE_TYPES:
            counts["files"] += 1
        elif record.type in ("text", "image", "url", "application"):
            counts[record.type] += 1
    return counts


def matches_filter(record: HistoryRecord, value: str) -> bool:
    if value == "all":
        return True
    if value == "favorites":
        return record.is_favorite
    if value == "files":
        return record.type in _FILE_TYPES
    return record.type == value


def filter_items(items: Sequence[HistoryRecord], value: str) -> list[HistoryRecord]:
    if value == "all":
        return list(items)
    return [record for record in items if matches_filter(record, value)]


@dataclass(slots=True)
class ClipboardFilters:
    """Currently selected filter; empty filters cannot be selected."""

    selected: str = "all"

    @property
    def is_active(self) -> bool:
        return self.selected != "all"

    def set_filter(self, value: str, items: Iterable[HistoryRecord]) -> bool:
        """Select ``value``; refused (False) for unknown or empty non-``all`` filters."""
        if value not in FILTER_VALUES:
            return False
        if value != "all" and filter_counts(items)[value] == 0:
            return False
        self.selected = value
        return True

    def cycle(self, items: Sequence[HistoryRecord]) -> str:
        """Advance to the next filter that has matches, wrapping to ``all``."""
        counts = filter_counts(items)
        start = FILTER_VALUES.index(self.selected) if self.selected in FILTER_VALUES else 0
        for step in range(1, len(FILTER_VALUES) + 1):
            candidate = FILTER_VALUES[(start + step) % len(FILTER_VALUES)]
            if candidate == "all" or counts[candidate] > 0:
                self.selected = candidate
                break
        return self.selected

    def apply(self, items: Sequence[HistoryRecord]) -> list[HistoryRecord]:
        return filter_items(items, self.selected)


__all__ = [
    "FILTER_LABELS",
    "FILTER_VALUES",
    "ClipboardFilters",
    "filter_counts",
    "filter_items",
    "matches_filter",
]
