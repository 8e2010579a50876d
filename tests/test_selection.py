"""Tests for selection, multi-selection and keyboard navigation."""

from __future__ import annotations

from dataclasses import replace

import pytest

from clipboard_panel.models import KeyPress, ListState, PanelState, SelectionState
from clipboard_panel.selection import (
    SelectionTracker,
    clear_selection,
    ensure_selection,
    navigation_index,
    prune_multi_selection,
    quick_select_index,
    reconcile_selection,
    select_index,
    select_record,
    set_multi_select_mode,
    toggle_multi_select_item,
)
from clipboard_panel.session import PanelSession


def _state(records, *, selected_key=None, marked=(), multi=False):
    return PanelState(
        listing=ListState(items=tuple(records), total=len(records)),
        selection=SelectionState(
            selected_key=selected_key,
            selected_item=None,
            multi_selected_keys=tuple(marked),
            multi_select_mode=multi,
        ),
    )


# ============================================================================
# Pure transitions
# ============================================================================


class TestEnsureSelection:
    def test_empty_list_clears_selection(self, make_record):
        state = select_record(_state([]), make_record(id=1))
        result = ensure_selection(state)
        assert result.selection.selected_key is None
        assert result.selection.selected_item is None

    def test_unset_target_selects_first(self, make_records):
        records = make_records(3)
        result = ensure_selection(_state(records))
        assert result.selection.selected_key == "id-1"
        assert result.selection.selected_item == records[0]

    def test_vanished_target_falls_back_to_first(self, make_records):
        result = ensure_selection(_state(make_records(3), selected_key="id-99"))
        assert result.selection.selected_key == "id-1"

    def test_preferred_key_wins(self, make_records):
        result = ensure_selection(_state(make_records(3), selected_key="id-1"), "id-3")
        assert result.selection.selected_key == "id-3"

    def test_rebinds_to_latest_copy(self, make_record):
        stale = make_record(id=2, content="old")
        fresh = make_record(id=2, content="new")
        state = select_record(_state([make_record(id=1), fresh]), stale)
        result = ensure_selection(state)
        assert result.selection.selected_item.content == "new"


class TestSelectIndex:
    def test_wraps_forward(self, make_records):
        result = select_index(_state(make_records(5)), 5)
        assert result.selection.selected_key == "id-1"

    def test_wraps_backward(self, make_records):
        result = select_index(_state(make_records(5)), -1)
        assert result.selection.selected_key == "id-5"

    def test_empty_list_is_noop(self):
        state = _state([])
        assert select_index(state, 3) is state


class TestMultiSelection:
    def test_prune_keeps_order_of_survivors(self, make_records):
        records = make_records(3)
        state = _state([records[0], records[2]], marked=("id-1", "id-2", "id-3"))
        assert prune_multi_selection(state).selection.multi_selected_keys == ("id-1", "id-3")

    def test_toggle_adds_and_removes(self, make_record):
        record = make_record(id=4)
        state = toggle_multi_select_item(_state([record]), record)
        assert state.selection.multi_selected_keys == ("id-4",)
        state = toggle_multi_select_item(state, record)
        assert state.selection.multi_selected_keys == ()

    def test_leaving_mode_clears_marks(self, make_records):
        state = _state(make_records(2), marked=("id-1",), multi=True)
        result = set_multi_select_mode(state, False)
        assert result.selection.multi_select_mode is False
        assert result.selection.multi_selected_keys == ()

    def test_entering_mode_keeps_marks(self, make_records):
        state = _state(make_records(2), marked=("id-1",))
        result = set_multi_select_mode(state, True)
        assert result.selection.multi_selected_keys == ("id-1",)

    def test_reconcile_leaves_unset_selection_alone(self, make_records):
        result = reconcile_selection(_state(make_records(2)))
        assert result.selection.selected_key is None

    def test_multi_selected_items_follow_list_order(self, make_records):
        state = _state(make_records(3), marked=("id-3", "id-1"))
        assert [r.id for r in state.multi_selected_items] == [1, 3]
        assert state.multi_selected_count == 2


def test_clear_selection_noop_returns_same_state():
    state = _state([])
    assert clear_selection(state) is state


# ============================================================================
# Navigation
# ============================================================================


class TestNavigationIndex:
    @pytest.mark.parametrize(
        ("key", "active", "expected"),
        [
            ("down", -1, 1),
            ("down", 2, 3),
            ("up", -1, 3),
            ("up", 0, -1),
            ("home", 3, 0),
            ("end", 0, 4),
            ("left", 0, None),
        ],
    )
    def test_targets(self, key, active, expected):
        assert navigation_index(key, active, 5) == expected

    def test_empty_list(self):
        assert navigation_index("down", -1, 0) is None


class TestQuickSelect:
    def test_digit_three_selects_third(self):
        assert quick_select_index(KeyPress("3", meta=True), 5) == 2

    def test_ctrl_also_counts_as_command(self):
        assert quick_select_index(KeyPress("1", ctrl=True), 5) == 0

    def test_beyond_list_length_ignored(self):
        assert quick_select_index(KeyPress("9", meta=True), 5) is None

    def test_shift_disables(self):
        assert quick_select_index(KeyPress("3", meta=True, shift=True), 5) is None

    def test_requires_modifier(self):
        assert quick_select_index(KeyPress("3"), 5) is None

    def test_zero_is_not_an_accelerator(self):
        assert quick_select_index(KeyPress("0", meta=True), 5) is None


# ============================================================================
# Tracker
# ============================================================================


class TestSelectionTracker:
    def _tracker(self, records, ui, **kwargs):
        session = PanelSession(_state(records, **kwargs))
        return session, SelectionTracker(session, ui)

    def test_select_reveals_record(self, make_records, recording_ui):
        records = make_records(3)
        session, tracker = self._tracker(records, recording_ui)
        tracker.select(records[1])
        assert session.state.selection.selected_key == "id-2"
        recording_ui.ensure_visible.assert_called_once_with("id-2")

    def test_navigate_down_from_nothing_selects_second(self, make_records, recording_ui):
        session, tracker = self._tracker(make_records(5), recording_ui)
        assert tracker.navigate(KeyPress("down")) is True
        assert session.state.selection.selected_key == "id-2"

    def test_navigate_up_from_first_wraps_to_last(self, make_records, recording_ui):
        records = make_records(5)
        session, tracker = self._tracker(records, recording_ui)
        tracker.select(records[0])
        tracker.navigate(KeyPress("up"))
        assert session.state.selection.selected_key == "id-5"

    def test_digit_accelerator(self, make_records, recording_ui):
        session, tracker = self._tracker(make_records(5), recording_ui)
        assert tracker.navigate(KeyPress("3", meta=True)) is True
        assert session.state.active_index == 2

    def test_digit_beyond_length_not_consumed(self, make_records, recording_ui):
        records = make_records(5)
        session, tracker = self._tracker(records, recording_ui)
        tracker.select(records[0])
        assert tracker.navigate(KeyPress("9", meta=True)) is False
        assert session.state.selection.selected_key == "id-1"

    def test_navigation_on_empty_list_consumed_without_change(self, recording_ui):
        session, tracker = self._tracker([], recording_ui)
        before = session.state
        assert tracker.navigate(KeyPress("down")) is True
        assert session.state is before
        recording_ui.ensure_visible.assert_not_called()

    def test_unrelated_key_not_consumed(self, make_records, recording_ui):
        _, tracker = self._tracker(make_records(2), recording_ui)
        assert tracker.navigate(KeyPress("x")) is False

    def test_ui_failure_does_not_break_selection(self, make_records, recording_ui):
        recording_ui.ensure_visible.side_effect = RuntimeError("gone")
        records = make_records(2)
        session, tracker = self._tracker(records, recording_ui)
        tracker.select(records[1])
        assert session.state.selection.selected_key == "id-2"

    def test_default_ui_is_noop(self, make_records):
        records = make_records(2)
        session = PanelSession(_state(records))
        SelectionTracker(session).select(records[0])
        assert session.state.selection.selected_key == "id-1"

    def test_toggle_multi_select_mode(self, make_records, recording_ui):
        session, tracker = self._tracker(make_records(2), recording_ui)
        tracker.toggle_multi_select_mode()
        assert session.state.selection.multi_select_mode is True
        tracker.toggle_multi_select_mode()
        assert session.state.selection.multi_select_mode is False

    def test_ensure_selection_with_preferred_key(self, make_records, recording_ui):
        session, tracker = self._tracker(make_records(3), recording_ui)
        tracker.ensure_selection("id-3")
        assert session.state.selection.selected_key == "id-3"
        recording_ui.ensure_visible.assert_called_with("id-3")


def test_state_replace_keeps_selection_frozen(make_records):
    state = _state(make_records(1))
    with pytest.raises(AttributeError):
        state.selection.selected_key = "id-1"  # type: ignore[misc]
    assert replace(state.selection, selected_key="id-1").selected_key == "id-1"
