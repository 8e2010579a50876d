"""Tests for type filters and date sections."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from clipboard_panel.filters import (
    FILTER_VALUES,
    ClipboardFilters,
    filter_counts,
    filter_items,
    matches_filter,
)
from clipboard_panel.sections import (
    SECTION_DEFINITIONS,
    group_sections,
    resolve_section_key,
)

NOW = datetime(2024, 5, 20, 15, 0)


@pytest.fixture
def mixed_records(make_record):
    return [
        make_record(id=1, type="text", is_favorite=True),
        make_record(id=2, type="image"),
        make_record(id=3, type="file"),
        make_record(id=4, type="files"),
        make_record(id=5, type="url", is_favorite=True),
        make_record(id=6, type="html"),
    ]


class TestFilters:
    def test_counts(self, mixed_records):
        counts = filter_counts(mixed_records)
        assert counts == {
            "all": 6,
            "favorites": 2,
            "text": 1,
            "image": 1,
            "files": 2,
            "url": 1,
            "application": 0,
        }

    def test_files_filter_covers_file_and_files(self, mixed_records):
        assert [r.id for r in filter_items(mixed_records, "files")] == [3, 4]

    def test_favorites_filter(self, mixed_records):
        assert [r.id for r in filter_items(mixed_records, "favorites")] == [1, 5]

    def test_all_returns_copy(self, mixed_records):
        result = filter_items(mixed_records, "all")
        assert result == mixed_records
        assert result is not mixed_records

    def test_matches_filter_exact_type(self, make_record):
        assert matches_filter(make_record(type="html"), "text") is False

    def test_set_filter_refuses_empty(self, mixed_records):
        filters = ClipboardFilters()
        assert filters.set_filter("application", mixed_records) is False
        assert filters.selected == "all"

    def test_set_filter_refuses_unknown(self, mixed_records):
        assert ClipboardFilters().set_filter("videos", mixed_records) is False

    def test_set_filter_accepts(self, mixed_records):
        filters = ClipboardFilters()
        assert filters.set_filter("image", mixed_records) is True
        assert filters.is_active is True
        assert [r.id for r in filters.apply(mixed_records)] == [2]

    def test_cycle_visits_non_empty_filters(self, mixed_records):
        filters = ClipboardFilters()
        visited = [filters.cycle(mixed_records) for _ in range(len(FILTER_VALUES))]
        assert visited == ["favorites", "text", "image", "files", "url", "all", "favorites"]

    def test_cycle_recovers_from_unknown_selection(self, mixed_records):
        filters = ClipboardFilters(selected="bogus")
        assert filters.cycle(mixed_records) == "favorites"


class TestSections:
    @pytest.mark.parametrize(
        ("timestamp", "expected"),
        [
            (NOW - timedelta(hours=1), "today"),
            (NOW - timedelta(days=2), "three_days"),
            (NOW - timedelta(days=5), "one_week"),
            (datetime(2024, 5, 5, 9, 0), "one_month"),
            (datetime(2024, 4, 10, 9, 0), "last_month"),
            (datetime(2024, 3, 1, 9, 0), "three_months"),
            (datetime(2023, 1, 1, 9, 0), "forever"),
            (None, "forever"),
            ("garbage", "forever"),
        ],
    )
    def test_resolve_section_key(self, timestamp, expected):
        assert resolve_section_key(timestamp, NOW) == expected

    def test_last_month_across_year_boundary(self):
        now = datetime(2024, 1, 10, 12, 0)
        assert resolve_section_key(datetime(2023, 12, 15), now) == "last_month"

    def test_epoch_millis_accepted(self):
        millis = int((NOW - timedelta(minutes=5)).timestamp() * 1000)
        assert resolve_section_key(millis, NOW) == "today"

    def test_group_sections_skips_empty_and_orders_newest_first(self, make_record):
        records = [
            make_record(id=1, timestamp=datetime(2023, 1, 1)),
            make_record(id=2, timestamp=NOW - timedelta(hours=2)),
            make_record(id=3, timestamp=NOW - timedelta(hours=1)),
            make_record(id=4, timestamp=NOW - timedelta(days=2)),
        ]
        sections = group_sections(records, NOW)

        assert [s.key for s in sections] == ["today", "three_days", "forever"]
        assert [s.title for s in sections] == ["Today", "Within 3 days", "Earlier"]
        today = sections[0]
        assert [e.record.id for e in today.entries] == [3, 2]
        assert [e.global_index for e in today.entries] == [0, 1]
        assert sections[2].entries[0].global_index == 3

    def test_group_sections_empty(self):
        assert group_sections([], NOW) == []

    def test_definitions_cover_every_bucket(self):
        assert [d.key for d in SECTION_DEFINITIONS] == [
            "today",
            "three_days",
            "one_week",
            "one_month",
            "last_month",
            "three_months",
            "forever",
        ]
