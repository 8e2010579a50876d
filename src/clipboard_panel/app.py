"""Textual application hosting the clipboard history panel."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding, BindingType
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widgets import Footer, Header, Input, Label, OptionList
from textual.widgets.option_list import Option, OptionDoesNotExist

from clipboard_panel.action_messages import build_bulk_notification
from clipboard_panel.config import save_config
from clipboard_panel.keys import item_key
from clipboard_panel.manager import ClipboardManager
from clipboard_panel.models import ContentInfo, HistoryRecord, KeyPress, PanelConfig, PanelState
from clipboard_panel.sections import SECTION_TITLES, resolve_section_key
from clipboard_panel.services.interfaces import PanelServices
from clipboard_panel.widgets import (
    ClipboardDetails,
    render_record_option,
    render_status_line,
    set_ascii_icons,
)

logger = logging.getLogger(__name__)

SEARCH_DEBOUNCE_DELAY = 0.3
SECTION_OPTION_PREFIX = "section:"

APP_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit", show=False),
    Binding("slash", "focus_search", "Search", show=False),
    Binding("escape", "cancel", "Cancel", show=False),
    Binding("ctrl+s", "toggle_favorite", "Favorite", show=False),
    Binding("ctrl+enter", "apply", "Paste", show=False),
    Binding("delete", "delete", "Delete", show=False),
    Binding("ctrl+l", "clear_history", "Clear History", show=False),
    Binding("ctrl+r", "refresh", "Refresh", show=False),
    Binding("pagedown", "load_more", "More", show=False),
    Binding("f", "cycle_filter", "Filter", show=False),
    Binding("i", "toggle_icons", "Icons", show=False),
    Binding("m", "toggle_multi_select", "Multi-select", show=False),
    Binding("space", "toggle_mark", "Mark", show=False),
    Binding("D", "bulk_delete", "Delete Marked", show=False),
    Binding("F", "bulk_favorite", "Favorite Marked", show=False),
    *(
        Binding(f"alt+{digit}", f"quick_select('{digit}')", f"Select {digit}", show=False)
        for digit in "123456789"
    ),
]

APP_CSS = """
#main-container {
    height: 1fr;
}

#left-pane {
    width: 2fr;
    min-width: 40;
    height: 100%;
    border: tall $primary-darken-2;
}

#left-pane:focus-within {
    border: tall $accent;
}

#right-pane {
    width: 3fr;
    height: 100%;
    border: tall $primary-darken-2;
}

#clip-list {
    height: 1fr;
}

#status-bar {
    height: 1;
    padding: 0 1;
    color: $text-muted;
}

#details-scroll {
    padding: 0 1;
}
"""


def _info_cache_key(record: HistoryRecord) -> tuple[str, str, str]:
    return (item_key(record), record.type, record.content)


class TextualUiBridge:
    """UiBridge backed by the running Textual app."""

    def __init__(self, app: ClipboardPanelApp) -> None:
        self._app = app

    def ensure_visible(self, key: str) -> None:
        self._app.call_after_refresh(self._app.highlight_key, key)

    def show_error(self, message: str) -> None:
        self._app.notify(message, title="Clipboard", severity="error", timeout=8)


class ClipboardPanelApp(App):
    """Clipboard history browser: list, filters, details and hotkeys."""

    TITLE = "Clipboard History"
    AUTO_FOCUS = "#clip-list"
    BINDINGS = APP_BINDINGS
    CSS = APP_CSS

    def __init__(
        self,
        services: PanelServices,
        *,
        config: PanelConfig | None = None,
        keyword: str = "",
    ) -> None:
        super().__init__()
        self._config = config or PanelConfig()
        set_ascii_icons(self._config.ascii_icons)
        self._initial_keyword = keyword
        self.manager = ClipboardManager(
            services,
            config=self._config,
            ui=TextualUiBridge(self),
            keyword=keyword,
        )
        self._info_cache: dict[tuple[str, str, str], ContentInfo] = {}
        self._background_tasks: set[asyncio.Task[None]] = set()
        self._search_timer: Timer | None = None
        self._pending_query = keyword
        self._unwatch = self.manager.session.watch(self._on_state_changed)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-container"):
            with Vertical(id="left-pane"):
                yield Input(
                    value=self._initial_keyword,
                    placeholder=" Search clipboard history",
                    id="search-input",
                )
                yield OptionList(id="clip-list")
                yield Label("", id="status-bar")
            with Vertical(id="right-pane"):
                with VerticalScroll(id="details-scroll"):
                    yield ClipboardDetails(id="clip-details")
        yield Footer()

    def on_mount(self) -> None:
        """Render the empty list and start the initial load."""
        self._refresh_list_view()
        self._update_details()
        self._update_status_bar()
        self._track_task(self.manager.bootstrap())
        try:
            self.query_one("#clip-list", OptionList).focus()
        except NoMatches:
            pass

    async def on_unmount(self) -> None:
        """Stop listeners and pending timers."""
        timer = self._search_timer
        self._search_timer = None
        if timer is not None:
            timer.stop()
        self._unwatch()
        self.manager.close()
        for task in list(self._background_tasks):
            task.cancel()

    # ========================================================================
    # Background tasks
    # ========================================================================

    def _track_task(self, coro: Any) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    # ========================================================================
    # Rendering
    # ========================================================================

    def _describe(self, record: HistoryRecord) -> ContentInfo:
        cache_key = _info_cache_key(record)
        info = self._info_cache.get(cache_key)
        if info is None:
            info = self.manager.describe(record)
            self._info_cache[cache_key] = info
        return info

    def _prune_info_cache(self, items: tuple[HistoryRecord, ...]) -> None:
        live = {_info_cache_key(record) for record in items}
        for cache_key in [key for key in self._info_cache if key not in live]:
            del self._info_cache[cache_key]

    def _on_state_changed(self, old: PanelState, new: PanelState) -> None:
        if (
            old.items is not new.items
            or old.selection.multi_selected_keys != new.selection.multi_selected_keys
            or old.selection.multi_select_mode != new.selection.multi_select_mode
        ):
            if old.items is not new.items:
                self._prune_info_cache(new.items)
            self._refresh_list_view()
        if old.selection.selected_item is not new.selection.selected_item:
            self._update_details()
            if new.selection.selected_key is not None:
                self.highlight_key(new.selection.selected_key)
        self._update_status_bar()

    def _refresh_list_view(self) -> None:
        """Rebuild the option list from the filtered, date-grouped records."""
        try:
            option_list = self.query_one("#clip-list", OptionList)
        except NoMatches:
            return
        state = self.manager.state
        marked = set(state.selection.multi_selected_keys)
        options: list[Option] = []
        for section in self.manager.sections():
            options.append(
                Option(
                    f"[bold dim]{section.title}[/]",
                    id=f"{SECTION_OPTION_PREFIX}{section.key}",
                    disabled=True,
                )
            )
            for entry in section.entries:
                key = item_key(entry.record)
                options.append(
                    Option(
                        render_record_option(
                            entry.record,
                            self._describe(entry.record),
                            multi_select_mode=state.selection.multi_select_mode,
                            multi_selected=key in marked,
                        ),
                        id=key,
                    )
                )

        option_list.clear_options()
        if options:
            option_list.add_options(options)
        elif state.is_loading:
            option_list.add_option(Option("[dim]Loading...[/]", disabled=True))
        elif self.manager.engine.keyword or self.manager.filters.is_active:
            option_list.add_option(Option("[dim]No clips match[/]", disabled=True))
        else:
            option_list.add_option(Option("[dim]Clipboard history is empty[/]", disabled=True))

        selected_key = state.selection.selected_key
        if selected_key is not None:
            self.highlight_key(selected_key)

    def highlight_key(self, key: str) -> None:
        """Move the list highlight to ``key`` when it is rendered."""
        try:
            option_list = self.query_one("#clip-list", OptionList)
            index = option_list.get_option_index(key)
        except (NoMatches, OptionDoesNotExist):
            return
        if option_list.highlighted != index:
            option_list.highlighted = index

    def _update_details(self) -> None:
        try:
            details = self.query_one("#clip-details", ClipboardDetails)
        except NoMatches:
            return
        record = self.manager.state.selection.selected_item
        if record is None:
            details.update_record(None)
            return
        details.update_record(
            record,
            self._describe(record),
            section_title=SECTION_TITLES[resolve_section_key(record.timestamp)],
        )

    def _update_status_bar(self) -> None:
        try:
            status = self.query_one("#status-bar", Label)
        except NoMatches:
            return
        status.update(
            render_status_line(
                self.manager.state,
                self.manager.filter_counts(),
                self.manager.filters.selected,
            )
        )

    # ========================================================================
    # Events
    # ========================================================================

    def _record_for_option(self, option_id: str | None) -> HistoryRecord | None:
        if option_id is None or option_id.startswith(SECTION_OPTION_PREFIX):
            return None
        for record in self.manager.state.items:
            if item_key(record) == option_id:
                return record
        return None

    @on(OptionList.OptionHighlighted, "#clip-list")
    def on_clip_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        """Select the highlighted clip and page in more near the end of the list."""
        record = self._record_for_option(event.option.id)
        if record is None:
            return
        if item_key(record) != self.manager.state.selection.selected_key:
            self.manager.select(record)
        option_list = event.option_list
        if event.option_index >= option_list.option_count - 1:
            state = self.manager.state
            if state.listing.can_load_more and not state.is_loading_more:
                self._track_task(self.manager.load_more())

    @on(OptionList.OptionSelected, "#clip-list")
    def on_clip_selected(self, event: OptionList.OptionSelected) -> None:
        """Enter copies the clip to the system clipboard."""
        record = self._record_for_option(event.option.id)
        if record is None:
            return
        if item_key(record) != self.manager.state.selection.selected_key:
            self.manager.select(record)
        self._track_task(self.manager.handle_key(KeyPress("enter")))

    @on(Input.Submitted, "#search-input")
    def on_search_submitted(self, event: Input.Submitted) -> None:
        """Search immediately and return focus to the list."""
        self._cancel_search_timer()
        self._pending_query = event.value
        self._track_task(self.manager.search(event.value))
        self.query_one("#clip-list", OptionList).focus()

    @on(Input.Changed, "#search-input")
    def on_search_changed(self, event: Input.Changed) -> None:
        """Debounce keyword searches while typing."""
        if event.value == self._pending_query:
            return
        self._pending_query = event.value
        self._cancel_search_timer()
        self._search_timer = self.set_timer(SEARCH_DEBOUNCE_DELAY, self._debounced_search)

    def _cancel_search_timer(self) -> None:
        # Atomic swap: capture and clear before stopping
        old_timer = self._search_timer
        self._search_timer = None
        if old_timer is not None:
            old_timer.stop()

    def _debounced_search(self) -> None:
        self._search_timer = None
        self._track_task(self.manager.search(self._pending_query))

    # ========================================================================
    # Actions
    # ========================================================================

    def action_focus_search(self) -> None:
        self.query_one("#search-input", Input).focus()

    def action_cancel(self) -> None:
        """Leave multi-select mode, or hand focus back to the list."""
        if self.manager.state.selection.multi_select_mode:
            self.manager.tracker.set_multi_select_mode(False)
            return
        self.query_one("#clip-list", OptionList).focus()

    def action_toggle_favorite(self) -> None:
        self._track_task(self.manager.handle_key(KeyPress("s", ctrl=True)))

    def action_apply(self) -> None:
        self._track_task(self.manager.handle_key(KeyPress("enter", ctrl=True)))

    def action_quick_select(self, digit: str) -> None:
        self._track_task(self.manager.handle_key(KeyPress(digit, meta=True)))

    def action_delete(self) -> None:
        self._track_task(self.manager.mutations.delete_selected())

    def action_clear_history(self) -> None:
        self._track_task(self.manager.mutations.clear_history())

    def action_refresh(self) -> None:
        self._track_task(self.manager.refresh())

    def action_load_more(self) -> None:
        self._track_task(self.manager.load_more())

    def action_cycle_filter(self) -> None:
        self.manager.cycle_filter()
        self._refresh_list_view()
        self._update_status_bar()

    def action_toggle_icons(self) -> None:
        """Switch between Unicode and ASCII icons and persist the choice."""
        self._config = replace(self._config, ascii_icons=not self._config.ascii_icons)
        set_ascii_icons(self._config.ascii_icons)
        self._refresh_list_view()
        self._update_details()
        self._save_config_or_warn("icon preference")

    def _save_config_or_warn(self, context: str) -> bool:
        if not save_config(self._config):
            self.notify(f"Failed to save {context}.", title="Clipboard", severity="warning")
            return False
        return True

    def action_toggle_multi_select(self) -> None:
        self.manager.tracker.toggle_multi_select_mode()

    def action_toggle_mark(self) -> None:
        state = self.manager.state
        record = state.selection.selected_item
        if not state.selection.multi_select_mode or record is None:
            return
        self.manager.tracker.toggle_multi_select_item(record)

    def action_bulk_delete(self) -> None:
        self._track_task(self._run_bulk("Deleted", self.manager.mutations.bulk_delete))

    def action_bulk_favorite(self) -> None:
        self._track_task(self._run_bulk("Favorited", self.manager.mutations.bulk_favorite))

    async def _run_bulk(self, verb: str, operation: Any) -> None:
        if not self.manager.state.multi_selected_count:
            self.notify("No clips marked", title="Clipboard", severity="warning")
            return
        count = await operation()
        if count and self.manager.state.error_message is None:
            self.notify(build_bulk_notification(verb, count), title="Clipboard")


__all__ = ["APP_BINDINGS", "ClipboardPanelApp", "TextualUiBridge"]
