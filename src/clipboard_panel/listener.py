"""Fold pushed store changes into the live list."""

from __future__ import annotations

import logging
from collections.abc import Callable

from clipboard_panel.keys import item_key
from clipboard_panel.models import HistoryRecord
from clipboard_panel.selection import SelectionTracker
from clipboard_panel.services.interfaces import HistoryStore
from clipboard_panel.session import PanelSession
from clipboard_panel.state import apply_change_notification

logger = logging.getLogger(__name__)


class ChangeListener:
    """Subscribe once to store notifications and merge each changed record."""

    def __init__(
        self,
        session: PanelSession,
        store: HistoryStore,
        tracker: SelectionTracker,
    ) -> None:
        self._session = session
        self._store = store
        self._tracker = tracker
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._store.subscribe(self.handle_change)

    def stop(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def handle_change(self, record: HistoryRecord) -> None:
        """Prepend a new record or overlay a known one, then focus it."""
        key = item_key(record)
        logger.debug("Clipboard change for %s", key)
        self._session.commit(apply_change_notification(self._session.state, record))
        self._tracker.ensure_selection(key)


__all__ = ["ChangeListener"]
