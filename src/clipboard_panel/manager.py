"""Panel facade wiring session, selection, sync, mutations and notifications."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from clipboard_panel.classify import classify_content
from clipboard_panel.filters import ClipboardFilters, filter_counts
from clipboard_panel.listener import ChangeListener
from clipboard_panel.models import (
    ContentInfo,
    HistoryRecord,
    KeyPress,
    PanelConfig,
    PanelState,
)
from clipboard_panel.mutations import MutationCoordinator
from clipboard_panel.sections import GroupedSection, group_sections
from clipboard_panel.selection import SelectionTracker
from clipboard_panel.services.interfaces import NullUiBridge, PanelServices, UiBridge
from clipboard_panel.session import PanelSession
from clipboard_panel.state import set_error
from clipboard_panel.sync import SyncEngine

logger = logging.getLogger(__name__)

KEY_ENTER = "enter"


class ClipboardManager:
    """Single entry point the UI talks to.

    Every new error message is forwarded to ``UiBridge.show_error`` once.
    """

    def __init__(
        self,
        services: PanelServices,
        *,
        config: PanelConfig | None = None,
        ui: UiBridge | None = None,
        session: PanelSession | None = None,
        keyword: str = "",
    ) -> None:
        self.config = config or PanelConfig()
        self.services = services
        self.ui: UiBridge = ui if ui is not None else NullUiBridge()
        self.session = session or PanelSession()
        self.tracker = SelectionTracker(self.session, self.ui)
        self.engine = SyncEngine(self.session, services.store, self.tracker, keyword=keyword)
        self.mutations = MutationCoordinator(
            self.session,
            services.store,
            self.tracker,
            blob_resolver=services.blob_resolver,
            clipboard=services.clipboard,
            channel=services.channel,
        )
        self.listener = ChangeListener(self.session, services.store, self.tracker)
        self.filters = ClipboardFilters()
        self._unwatch = self.session.watch(self._forward_error)

    @property
    def state(self) -> PanelState:
        return self.session.state

    def _forward_error(self, old: PanelState, new: PanelState) -> None:
        message = new.error_message
        if message and message != old.error_message:
            self.ui.show_error(message)

    # -- lifecycle ------------------------------------------------------------

    async def bootstrap(self) -> None:
        """Initial load with spinner, then subscribe to store changes."""
        self.session.commit(set_error(self.state, None))
        try:
            await self.engine.refresh()
            self.listener.start()
        except Exception as exc:
            logger.warning("Clipboard panel bootstrap failed", exc_info=True)
            self.session.commit(set_error(self.state, exc))
        finally:
            if self.state.is_loading:
                self.session.commit(replace(self.state, is_loading=False))

    async def search(self, keyword: str) -> None:
        self.engine.keyword = keyword.strip()
        await self.engine.refresh()

    def close(self) -> None:
        self.listener.stop()
        self._unwatch()

    # -- delegation -----------------------------------------------------------

    async def refresh(self) -> None:
        await self.engine.refresh()

    async def load_more(self) -> None:
        await self.engine.load_more()

    def select(self, record: HistoryRecord) -> None:
        self.tracker.select(record)

    async def copy_selected(self) -> bool:
        copied = await self.mutations.copy_to_system_clipboard()
        if copied and self.config.hide_after_paste:
            await self.mutations.hide_window()
        return copied

    async def apply_selected(self) -> bool:
        applied = await self.mutations.apply_to_active_app()
        if applied and self.config.hide_after_paste:
            await self.mutations.hide_window()
        return applied

    # -- derived views --------------------------------------------------------

    def describe(self, record: HistoryRecord) -> ContentInfo:
        return classify_content(
            record.content,
            base_type=record.type,
            raw=record.raw_content,
            max_preview_length=self.config.max_preview_length,
        )

    def visible_items(self) -> list[HistoryRecord]:
        return self.filters.apply(self.state.items)

    def filter_counts(self) -> dict[str, int]:
        return filter_counts(self.state.items)

    def set_filter(self, value: str) -> bool:
        return self.filters.set_filter(value, self.state.items)

    def cycle_filter(self) -> str:
        return self.filters.cycle(self.state.items)

    def sections(self, now: datetime | None = None) -> list[GroupedSection]:
        return group_sections(self.visible_items(), now)

    # -- keyboard -------------------------------------------------------------

    async def handle_key(self, press: KeyPress) -> bool:
        """Route a key press to a hotkey; return whether it was consumed.

        Ctrl/Cmd+S toggles favorite, Enter copies, Ctrl/Cmd+Enter pastes
        into the active app; anything else falls through to navigation.
        """
        if press.command and not press.shift and not press.alt and press.key.lower() == "s":
            await self.mutations.toggle_favorite()
            return True
        if press.key == KEY_ENTER:
            if press.command:
                await self.apply_selected()
            else:
                await self.copy_selected()
            return True
        return self.tracker.navigate(press)


__all__ = ["ClipboardManager"]
