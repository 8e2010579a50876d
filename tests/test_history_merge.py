"""Tests for key-based history merging."""

from __future__ import annotations

from clipboard_panel.history import dedupe_records, merge_history, overlay_record
from clipboard_panel.keys import item_key
from clipboard_panel.models import HistoryRecord


def _keys(records):
    return [item_key(record) for record in records]


class TestMergeHistory:
    def test_new_keys_appended_in_arrival_order(self, make_records):
        existing = make_records(3)
        incoming = make_records(2, start=4)
        merged = merge_history(existing, incoming)
        assert _keys(merged) == ["id-1", "id-2", "id-3", "id-4", "id-5"]

    def test_known_key_overlaid_in_place(self, make_record):
        existing = [make_record(id=1), make_record(id=2, content="old")]
        update = make_record(id=2, content="new", is_favorite=True)
        merged = merge_history(existing, [update])
        assert _keys(merged) == ["id-1", "id-2"]
        assert merged[1].content == "new"
        assert merged[1].is_favorite is True

    def test_partial_update_keeps_unmentioned_fields(self, make_record):
        existing = [make_record(id=5, content="keep me", type="url")]
        partial = HistoryRecord.from_dict({"id": 5, "isFavorite": True})
        merged = merge_history(existing, [partial])
        assert merged[0].content == "keep me"
        assert merged[0].type == "url"
        assert merged[0].is_favorite is True

    def test_empty_inputs(self, make_records):
        assert merge_history([], []) == ()
        records = make_records(2)
        assert merge_history(records, []) == tuple(records)

    def test_duplicate_incoming_collapses(self, make_record):
        incoming = [make_record(id=1, content="a"), make_record(id=1, content="b")]
        merged = merge_history([], incoming)
        assert len(merged) == 1
        assert merged[0].content == "b"

    def test_never_duplicates_keys(self, make_records):
        first = make_records(5)
        merged = merge_history(first, make_records(5, start=3))
        assert len(set(_keys(merged))) == len(merged) == 7


class TestOverlayRecord:
    def test_overlay_unions_provided_fields(self):
        base = HistoryRecord.from_dict({"id": 1, "content": "x"})
        update = HistoryRecord.from_dict({"id": 1, "type": "url"})
        result = overlay_record(base, update)
        assert result.content == "x"
        assert result.type == "url"
        assert result.provided == frozenset({"id", "content", "type"})

    def test_full_record_replaces_every_field(self, make_record):
        base = make_record(id=1, content="a", is_favorite=True)
        update = make_record(id=1, content="b", is_favorite=False)
        assert overlay_record(base, update) == update


def test_dedupe_first_position_wins(make_record):
    records = [
        make_record(id=1, content="a"),
        make_record(id=2, content="b"),
        make_record(id=1, content="c"),
    ]
    deduped = dedupe_records(records)
    assert _keys(deduped) == ["id-1", "id-2"]
    assert deduped[0].content == "c"
