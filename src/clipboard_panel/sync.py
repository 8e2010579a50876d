"""Paginated history loading against the store."""

from __future__ import annotations

import logging

from clipboard_panel.selection import SelectionTracker
from clipboard_panel.services.interfaces import HistoryStore
from clipboard_panel.session import PanelSession
from clipboard_panel.state import apply_load_failure, apply_load_result, begin_load, end_load

logger = logging.getLogger(__name__)


class SyncEngine:
    """Own page/total/exhaustion bookkeeping and drive fetches.

    A reset load supersedes any incremental load still in flight: the stale
    page is discarded when it arrives. Each call lowers the loading flags it
    raised unless a later call raised the spinner again and now owns it.
    """

    def __init__(
        self,
        session: PanelSession,
        store: HistoryStore,
        tracker: SelectionTracker,
        *,
        keyword: str = "",
    ) -> None:
        self._session = session
        self._store = store
        self._tracker = tracker
        self.keyword = keyword
        self._generation = 0
        self._spinner_token = 0

    async def load_history(
        self,
        *,
        reset: bool = False,
        show_spinner: bool = False,
        ensure_selection_visible: bool = True,
    ) -> None:
        state = self._session.state
        if not reset and (state.is_loading_more or not state.listing.can_load_more):
            return

        if reset:
            self._generation += 1
        generation = self._generation
        if show_spinner:
            self._spinner_token += 1
        spinner_token = self._spinner_token
        target_page = 1 if reset else state.listing.page + 1

        self._session.commit(begin_load(state, reset=reset, show_spinner=show_spinner))
        try:
            result = await self._store.fetch_page(page=target_page, keyword=self.keyword or None)
            if generation != self._generation:
                logger.debug("Dropping stale page %d after a reset", target_page)
                return
            self._session.commit(
                apply_load_result(
                    self._session.state, result, reset=reset, target_page=target_page
                )
            )
            if ensure_selection_visible:
                self._tracker.ensure_selection()
        except Exception as exc:
            logger.warning("Failed to load history page %d", target_page, exc_info=True)
            if generation == self._generation:
                self._session.commit(apply_load_failure(self._session.state, exc))
        finally:
            # Only the latest spinner-raising call may lower the spinner
            if not show_spinner or spinner_token == self._spinner_token:
                self._session.commit(
                    end_load(self._session.state, reset=reset, show_spinner=show_spinner)
                )

    async def refresh(self) -> None:
        await self.load_history(reset=True, show_spinner=True)

    async def load_more(self) -> None:
        await self.load_history(reset=False, ensure_selection_visible=False)


__all__ = ["SyncEngine"]
