"""Reactive holder for the current panel state."""

from __future__ import annotations

import logging
from collections.abc import Callable

from clipboard_panel.models import PanelState

logger = logging.getLogger(__name__)

StateWatcher = Callable[[PanelState, PanelState], None]


class PanelSession:
    """Own the current ``PanelState`` and notify watchers on every change.

    Reducers stay pure; this is the only place state is swapped. Watchers are
    called with ``(old, new)`` after each effective commit.
    """

    def __init__(self, state: PanelState | None = None) -> None:
        self._state = state if state is not None else PanelState()
        self._watchers: list[StateWatcher] = []

    @property
    def state(self) -> PanelState:
        return self._state

    def commit(self, new_state: PanelState) -> PanelState:
        """Replace the state and notify watchers (no-op for an identical state)."""
        old_state = self._state
        if new_state is old_state or new_state == old_state:
            return old_state
        self._state = new_state
        for watcher in list(self._watchers):
            try:
                watcher(old_state, new_state)
            except Exception:
                logger.warning("State watcher %r failed", watcher, exc_info=True)
        return new_state

    def watch(self, callback: StateWatcher) -> Callable[[], None]:
        """Register ``callback``; the returned function unregisters it."""
        self._watchers.append(callback)

        def unwatch() -> None:
            if callback in self._watchers:
                self._watchers.remove(callback)

        return unwatch


__all__ = ["PanelSession", "StateWatcher"]
