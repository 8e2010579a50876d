"""Date buckets for the history list (newest first)."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from clipboard_panel.keys import to_timestamp_ms
from clipboard_panel.models import HistoryRecord


@dataclass(frozen=True, slots=True)
class SectionDefinition:
    key: str
    title: str


@dataclass(frozen=True, slots=True)
class SectionEntry:
    record: HistoryRecord
    global_index: int


@dataclass(frozen=True, slots=True)
class GroupedSection:
    key: str
    title: str
    entries: tuple[SectionEntry, ...] = field(default=())


SECTION_DEFINITIONS: tuple[SectionDefinition, ...] = (
    SectionDefinition("today", "Today"),
    SectionDefinition("three_days", "Within 3 days"),
    SectionDefinition("one_week", "Within a week"),
    SectionDefinition("one_month", "This month"),
    SectionDefinition("last_month", "Last month"),
    SectionDefinition("three_months", "Within 3 months"),
    SectionDefinition("forever", "Earlier"),
)

SECTION_TITLES = {definition.key: definition.title for definition in SECTION_DEFINITIONS}


def _month_start(now: datetime, months_back: int) -> datetime:
    month_index = now.year * 12 + (now.month - 1) - months_back
    return datetime(month_index // 12, month_index % 12 + 1, 1, tzinfo=now.tzinfo)


def _ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def _boundaries(now: datetime) -> list[tuple[str, int]]:
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return [
        ("today", _ms(start_of_today)),
        ("three_days", _ms(start_of_today - timedelta(days=3))),
        ("one_week", _ms(start_of_today - timedelta(days=7))),
        ("one_month", _ms(_month_start(now, 0))),
        ("last_month", _ms(_month_start(now, 1))),
        ("three_months", _ms(_month_start(now, 3))),
    ]


def resolve_section_key(timestamp: object, now: datetime | None = None) -> str:
    """Bucket a record timestamp relative to ``now`` (local time)."""
    milliseconds = to_timestamp_ms(timestamp)
    if milliseconds <= 0:
        return "forever"
    for key, boundary in _boundaries(now or datetime.now()):
        if milliseconds >= boundary:
            return key
    return "forever"


def group_sections(
    items: Iterable[HistoryRecord], now: datetime | None = None
) -> list[GroupedSection]:
    """Group records into non-empty date sections, newest first.

    Each entry carries its index in the timestamp-sorted list so keyboard
    navigation can map a rendered row back to a position.
    """
    now = now or datetime.now()
    ordered = sorted(items, key=lambda record: to_timestamp_ms(record.timestamp), reverse=True)
    buckets: dict[str, list[SectionEntry]] = {d.key: [] for d in SECTION_DEFINITIONS}
    for index, record in enumerate(ordered):
        buckets[resolve_section_key(record.timestamp, now)].append(SectionEntry(record, index))
    return [
        GroupedSection(key=d.key, title=d.title, entries=tuple(buckets[d.key]))
        for d in SECTION_DEFINITIONS
        if buckets[d.key]
    ]


__all__ = [
    "SECTION_DEFINITIONS",
    "SECTION_TITLES",
    "GroupedSection",
    "SectionDefinition",
    "SectionEntry",
    "group_sections",
    "resolve_section_key",
]
