"""Merge ordered record lists by item key."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from clipboard_panel.keys import item_key
from clipboard_panel.models import HistoryRecord


def overlay_record(base: HistoryRecord, update: HistoryRecord) -> HistoryRecord:
    """Overlay the fields ``update`` actually provided onto ``base``."""
    changes = {name: getattr(update, name) for name in update.provided}
    return replace(base, **changes, provided=base.provided | update.provided)


def merge_history(
    existing: Iterable[HistoryRecord],
    incoming: Iterable[HistoryRecord],
) -> tuple[HistoryRecord, ...]:
    """Merge ``incoming`` into ``existing`` keyed by ``item_key``.

    Unknown keys are appended in arrival order; known keys are overlaid in
    place, so pre-existing records keep their relative order. The same path
    serves page appends and pushed change notifications.
    """
    merged = list(existing)
    positions: dict[str, int] = {}
    for index, record in enumerate(merged):
        positions.setdefault(item_key(record), index)

    for record in incoming:
        key = item_key(record)
        index = positions.get(key)
        if index is None:
            positions[key] = len(merged)
            merged.append(record)
        else:
            merged[index] = overlay_record(merged[index], record)
    return tuple(merged)


def dedupe_records(records: Iterable[HistoryRecord]) -> tuple[HistoryRecord, ...]:
    """Collapse records sharing a key (first position wins, later fields overlay)."""
    return merge_history((), records)


__all__ = ["dedupe_records", "merge_history", "overlay_record"]
