"""Pure state transitions for the panel.

Every reducer takes a ``PanelState`` and returns a new one; nothing here
performs I/O. Reducers that change ``items`` also restore the selection
invariants (multi-selection pruned, selected key re-resolved), so callers
only add the "make visible" side effect on top.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any

from clipboard_panel.history import dedupe_records, merge_history, overlay_record
from clipboard_panel.keys import item_key
from clipboard_panel.models import (
    OPERATION_NAMES,
    HistoryPage,
    HistoryRecord,
    ListState,
    PanelState,
)
from clipboard_panel.selection import reconcile_selection

UNKNOWN_ERROR_MESSAGE = "Unknown error"


def format_error(error: Any) -> str:
    """Stringify a failure for the user-visible error slot."""
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    if isinstance(error, str):
        return error
    if error is None:
        return UNKNOWN_ERROR_MESSAGE
    try:
        return json.dumps(error)
    except (TypeError, ValueError):
        return str(error)


# ============================================================================
# Mutation results
# ============================================================================


@dataclass(frozen=True, slots=True)
class FavoriteUpdate:
    """The store confirmed a favorite flag for these keys."""

    keys: tuple[str, ...]
    is_favorite: bool


@dataclass(frozen=True, slots=True)
class RecordsRemoved:
    """These keys were deleted; ``count`` overrides the ``total`` decrement."""

    keys: tuple[str, ...]
    count: int | None = None


@dataclass(frozen=True, slots=True)
class HistoryCleared:
    """The store dropped the whole history."""


MutationResult = FavoriteUpdate | RecordsRemoved | HistoryCleared


# ============================================================================
# Loading
# ============================================================================


def begin_load(state: PanelState, *, reset: bool, show_spinner: bool) -> PanelState:
    """Prepare a fetch: clear the error, reset paging, raise the right flag."""
    changes: dict[str, Any] = {}
    if show_spinner or reset:
        changes["error_message"] = None
    if reset:
        changes["listing"] = replace(state.listing, page=1, exhausted=False)
    if show_spinner:
        changes["is_loading"] = True
    elif not reset:
        changes["is_loading_more"] = True
    return replace(state, **changes)


def _reset_exhausted(fetched: int, page_size: int) -> bool:
    if page_size > 0:
        return fetched < page_size
    return fetched == 0


def apply_load_result(
    state: PanelState,
    result: HistoryPage,
    *,
    reset: bool,
    target_page: int,
) -> PanelState:
    """Fold a fetched page into the list and update paging bookkeeping."""
    listing = state.listing
    fetched = len(result.records)
    resolved_page = result.page if result.page is not None else target_page
    page_size = result.page_size if result.page_size is not None else listing.page_size

    if reset:
        items = dedupe_records(result.records)
        exhausted = _reset_exhausted(fetched, page_size)
    else:
        previous_length = len(listing.items)
        items = merge_history(listing.items, result.records)
        exhausted = (
            fetched == 0
            or resolved_page < target_page
            or (page_size > 0 and fetched < page_size)
            or len(items) == previous_length
        )

    updated = ListState(
        items=items,
        page=resolved_page,
        page_size=page_size,
        total=max(0, result.total),
        exhausted=exhausted,
    )
    return reconcile_selection(replace(state, listing=updated))


def apply_load_failure(state: PanelState, error: Any) -> PanelState:
    """Record a failed fetch; list and paging stay at last-known-good."""
    return replace(state, error_message=format_error(error))


def end_load(state: PanelState, *, reset: bool, show_spinner: bool) -> PanelState:
    """Drop the flags ``begin_load`` raised for the same call."""
    changes: dict[str, Any] = {}
    if show_spinner:
        changes["is_loading"] = False
    if not show_spinner and not reset:
        changes["is_loading_more"] = False
    return replace(state, **changes)


# ============================================================================
# Operations
# ============================================================================


def begin_operation(state: PanelState, name: str) -> PanelState:
    if name not in OPERATION_NAMES:
        raise ValueError(f"Unknown operation: {name}")
    return replace(state, pending=state.pending | {name}, error_message=None)


def end_operation(state: PanelState, name: str) -> PanelState:
    return replace(state, pending=state.pending - {name})


def set_error(state: PanelState, error: Any) -> PanelState:
    """Overwrite the error slot (``None`` clears it)."""
    message = None if error is None else format_error(error)
    return replace(state, error_message=message)


def apply_mutation_result(state: PanelState, result: MutationResult) -> PanelState:
    """Apply a store-confirmed mutation to the local list."""
    listing = state.listing

    if isinstance(result, FavoriteUpdate):
        targets = set(result.keys)
        flag = HistoryRecord(is_favorite=result.is_favorite, provided=frozenset({"is_favorite"}))
        items = tuple(
            overlay_record(record, flag) if item_key(record) in targets else record
            for record in listing.items
        )
        state = replace(state, listing=replace(listing, items=items))
        selected = state.selection.selected_item
        if selected is not None and item_key(selected) in targets:
            state = replace(
                state,
                selection=replace(state.selection, selected_item=overlay_record(selected, flag)),
            )
        return reconcile_selection(state)

    if isinstance(result, RecordsRemoved):
        targets = set(result.keys)
        items = tuple(record for record in listing.items if item_key(record) not in targets)
        removed = result.count if result.count is not None else len(result.keys)
        total = max(0, listing.total - removed)
        return reconcile_selection(
            replace(state, listing=replace(listing, items=items, total=total))
        )

    if isinstance(result, HistoryCleared):
        return reconcile_selection(replace(state, listing=replace(listing, items=(), total=0)))

    raise TypeError(f"Unsupported mutation result: {result!r}")


# ============================================================================
# Push notifications
# ============================================================================


def apply_change_notification(state: PanelState, record: HistoryRecord) -> PanelState:
    """Prepend a new record or overlay a known one; reopen pagination."""
    listing = state.listing
    key = item_key(record)
    items = list(listing.items)
    total = listing.total
    for index, existing in enumerate(items):
        if item_key(existing) == key:
            items[index] = overlay_record(existing, record)
            break
    else:
        items.insert(0, record)
        total += 1
    updated = replace(listing, items=tuple(items), total=total, exhausted=False)
    return reconcile_selection(replace(state, listing=updated))


__all__ = [
    "UNKNOWN_ERROR_MESSAGE",
    "FavoriteUpdate",
    "HistoryCleared",
    "MutationResult",
    "RecordsRemoved",
    "apply_change_notification",
    "apply_load_failure",
    "apply_load_result",
    "apply_mutation_result",
    "begin_load",
    "begin_operation",
    "end_load",
    "end_operation",
    "format_error",
    "set_error",
]
