"""Selection and multi-selection over the materialized history list.

The module-level functions are pure transitions over ``PanelState``.
``SelectionTracker`` commits them to a ``PanelSession`` and fires the
injected "make visible" side effect whenever a record becomes selected.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

from clipboard_panel.keys import item_key
from clipboard_panel.models import HistoryRecord, KeyPress, PanelState
from clipboard_panel.services.interfaces import NullUiBridge, UiBridge

if TYPE_CHECKING:
    from clipboard_panel.session import PanelSession

logger = logging.getLogger(__name__)

# Key names follow Textual's naming ("down", "home", ...)
KEY_DOWN = "down"
KEY_UP = "up"
KEY_HOME = "home"
KEY_END = "end"
NAVIGATION_KEYS = frozenset({KEY_DOWN, KEY_UP, KEY_HOME, KEY_END})
QUICK_SELECT_KEYS = "123456789"


def find_record(items: Sequence[HistoryRecord], key: str | None) -> HistoryRecord | None:
    """Return the record in ``items`` whose key is ``key``."""
    if key is None:
        return None
    for record in items:
        if item_key(record) == key:
            return record
    return None


# ============================================================================
# Pure transitions
# ============================================================================


def select_record(state: PanelState, record: HistoryRecord) -> PanelState:
    return replace(
        state,
        selection=replace(state.selection, selected_key=item_key(record), selected_item=record),
    )


def clear_selection(state: PanelState) -> PanelState:
    if state.selection.selected_key is None and state.selection.selected_item is None:
        return state
    return replace(state, selection=replace(state.selection, selected_key=None, selected_item=None))


def ensure_selection(state: PanelState, preferred_key: str | None = None) -> PanelState:
    """Re-resolve the selection against the current items.

    Empty list clears the selection. Otherwise the target is ``preferred_key``
    or the current key; a missing or vanished target falls back to the first
    record, a present one re-binds to the latest copy of that record.
    """
    items = state.items
    if not items:
        return clear_selection(state)
    target = preferred_key if preferred_key is not None else state.selection.selected_key
    match = find_record(items, target)
    return select_record(state, match if match is not None else items[0])


def select_index(state: PanelState, index: int) -> PanelState:
    """Select by position, wrapping in both directions (no-op on empty list)."""
    items = state.items
    if not items:
        return state
    return select_record(state, items[index % len(items)])


def prune_multi_selection(state: PanelState) -> PanelState:
    """Drop multi-selected keys no longer present in the items (order preserved)."""
    keys = state.selection.multi_selected_keys
    if not keys:
        return state
    present = {item_key(record) for record in state.items}
    kept = tuple(key for key in keys if key in present)
    if len(kept) == len(keys):
        return state
    return replace(state, selection=replace(state.selection, multi_selected_keys=kept))


def reconcile_selection(state: PanelState) -> PanelState:
    """Restore selection invariants after ``items`` changed."""
    state = prune_multi_selection(state)
    if state.selection.selected_key is None:
        return state
    return ensure_selection(state)


def clear_multi_selection(state: PanelState) -> PanelState:
    if not state.selection.multi_selected_keys:
        return state
    return replace(state, selection=replace(state.selection, multi_selected_keys=()))


def set_multi_select_mode(state: PanelState, enabled: bool) -> PanelState:
    """Enter or leave multi-select mode; leaving clears the multi-selection."""
    if state.selection.multi_select_mode == enabled:
        return state
    state = replace(state, selection=replace(state.selection, multi_select_mode=enabled))
    if not enabled:
        state = clear_multi_selection(state)
    return state


def toggle_multi_select_item(state: PanelState, record: HistoryRecord) -> PanelState:
    key = item_key(record)
    keys = state.selection.multi_selected_keys
    if key in keys:
        updated = tuple(existing for existing in keys if existing != key)
    else:
        updated = (*keys, key)
    return replace(state, selection=replace(state.selection, multi_selected_keys=updated))


def navigation_index(key: str, active_index: int, count: int) -> int | None:
    """Target index for an arrow/Home/End key, before wrap-around."""
    if count <= 0:
        return None
    if key == KEY_DOWN:
        return (0 if active_index == -1 else active_index) + 1
    if key == KEY_UP:
        return (count - 1 if active_index == -1 else active_index) - 1
    if key == KEY_HOME:
        return 0
    if key == KEY_END:
        return count - 1
    return None


def quick_select_index(press: KeyPress, count: int) -> int | None:
    """Index for Ctrl/Cmd+1..9; Shift disables it and out-of-range is ignored."""
    if count <= 0 or not press.command or press.shift:
        return None
    if len(press.key) != 1 or press.key not in QUICK_SELECT_KEYS:
        return None
    index = int(press.key) - 1
    return index if index < count else None


# ============================================================================
# Session-bound tracker
# ============================================================================


class SelectionTracker:
    """Commit selection transitions and keep the selected row visible."""

    def __init__(self, session: PanelSession, ui: UiBridge | None = None) -> None:
        self._session = session
        self._ui: UiBridge = ui if ui is not None else NullUiBridge()

    @property
    def ui(self) -> UiBridge:
        return self._ui

    def _reveal(self, key: str | None) -> None:
        if key is None:
            return
        try:
            self._ui.ensure_visible(key)
        except Exception:
            logger.debug("ensure_visible failed for %s", key, exc_info=True)

    def _commit_and_reveal(self, state: PanelState) -> None:
        self._session.commit(state)
        self._reveal(state.selection.selected_key)

    def select(self, record: HistoryRecord) -> None:
        self._commit_and_reveal(select_record(self._session.state, record))

    def ensure_selection(self, preferred_key: str | None = None) -> None:
        self._commit_and_reveal(ensure_selection(self._session.state, preferred_key))

    def select_index(self, index: int) -> None:
        state = self._session.state
        if not state.items:
            return
        self._commit_and_reveal(select_index(state, index))

    def set_multi_select_mode(self, enabled: bool) -> None:
        self._session.commit(set_multi_select_mode(self._session.state, enabled))

    def toggle_multi_select_mode(self) -> None:
        self.set_multi_select_mode(not self._session.state.selection.multi_select_mode)

    def toggle_multi_select_item(self, record: HistoryRecord) -> None:
        self._session.commit(toggle_multi_select_item(self._session.state, record))

    def clear_multi_selection(self) -> None:
        self._session.commit(clear_multi_selection(self._session.state))

    def navigate(self, press: KeyPress) -> bool:
        """Handle arrow/Home/End and digit accelerators; return whether handled."""
        state = self._session.state
        count = len(state.items)
        if press.key in NAVIGATION_KEYS:
            index = navigation_index(press.key, state.active_index, count)
            if index is not None:
                self.select_index(index)
            return True
        index = quick_select_index(press, count)
        if index is None:
            return False
        self.select_index(index)
        return True


__all__ = [
    "KEY_DOWN",
    "KEY_END",
    "KEY_HOME",
    "KEY_UP",
    "SelectionTracker",
    "clear_multi_selection",
    "clear_selection",
    "ensure_selection",
    "find_record",
    "navigation_index",
    "prune_multi_selection",
    "quick_select_index",
    "reconcile_selection",
    "select_index",
    "select_record",
    "set_multi_select_mode",
    "toggle_multi_select_item",
]
