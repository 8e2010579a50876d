"""Tests for notification and error copy builders."""

from __future__ import annotations

import pytest

from clipboard_panel.action_messages import (
    build_actionable_error,
    build_apply_unavailable_error,
    build_bulk_notification,
    build_clipboard_unavailable_error,
    build_missing_store_error,
    build_next_step_hint,
)


def test_next_step_hint_adds_punctuation():
    assert build_next_step_hint("retry") == "Next step: retry."
    assert build_next_step_hint("retry!") == "Next step: retry!"


def test_actionable_error_with_reason():
    message = build_actionable_error("load history", why="timeout", next_step="press Ctrl+R")
    assert message.splitlines() == [
        "Could not load history.",
        "Why: timeout.",
        "Next step: press Ctrl+R.",
    ]


def test_actionable_error_without_reason():
    message = build_actionable_error("copy", next_step="try again")
    assert message.splitlines() == ["Could not copy.", "Next step: try again."]


@pytest.mark.parametrize(
    ("count", "expected"),
    [(0, "Deleted 0 items"), (1, "Deleted 1 item"), (4, "Deleted 4 items")],
)
def test_bulk_notification_pluralizes(count, expected):
    assert build_bulk_notification("Deleted", count) == expected


@pytest.mark.parametrize(
    "builder",
    [build_clipboard_unavailable_error, build_apply_unavailable_error, build_missing_store_error],
)
def test_canned_errors_are_actionable(builder):
    lines = builder().splitlines()
    assert lines[0].startswith("Could not ")
    assert lines[-1].startswith("Next step: ")
