"""Detail pane widget for the selected clipboard record."""

from __future__ import annotations

from rich.markup import escape as escape_markup
from textual.widgets import Static

from clipboard_panel.keys import format_timestamp
from clipboard_panel.models import ContentInfo, HistoryRecord
from clipboard_panel.widgets.listing import PANEL_COLORS, icon_glyph, swatch_style

# Maximum characters of raw content shown below the metadata
DETAIL_CONTENT_MAX_LEN = 2000


def render_record_details(
    record: HistoryRecord,
    info: ContentInfo,
    *,
    section_title: str | None = None,
) -> str:
    """Render classification metadata and content for the detail pane."""
    accent = PANEL_COLORS["accent"]
    glyph = escape_markup(icon_glyph(info.icon))
    lines = [f"[bold {accent}]{glyph} {escape_markup(info.label)}[/]"]

    rows: list[tuple[str, str]] = []
    if section_title:
        rows.append(("Captured", f"{format_timestamp(record.timestamp)} ({section_title})"))
    else:
        rows.append(("Captured", format_timestamp(record.timestamp)))
    if info.base_type:
        rows.append(("Source type", info.base_type))
    if record.is_favorite:
        rows.append(("Favorite", "yes"))
    rows.extend((entry.label, entry.value) for entry in info.meta)
    if info.href:
        rows.append(("Link", info.href))

    for label, value in rows:
        lines.append(f"[dim]{escape_markup(label)}:[/] {escape_markup(value)}")

    swatch = swatch_style(info.color_swatch)
    if swatch:
        lines.append(f"[on {swatch}]        [/]")

    content = record.content or ""
    if len(content) > DETAIL_CONTENT_MAX_LEN:
        content = f"{content[:DETAIL_CONTENT_MAX_LEN]}…"
    lines.append("")
    lines.append(escape_markup(content) if content.strip() else "[dim italic](empty)[/]")
    return "\n".join(lines)


class ClipboardDetails(Static):
    """Widget showing the selected record's classification and content."""

    def __init__(self, *, id: str | None = None) -> None:
        super().__init__(id=id)
        self._record: HistoryRecord | None = None

    @property
    def record(self) -> HistoryRecord | None:
        return self._record

    def update_record(
        self,
        record: HistoryRecord | None,
        info: ContentInfo | None = None,
        *,
        section_title: str | None = None,
    ) -> None:
        self._record = record
        if record is None or info is None:
            self.update("[dim italic]Select a clip to view details[/]")
            return
        self.update(render_record_details(record, info, section_title=section_title))


__all__ = ["DETAIL_CONTENT_MAX_LEN", "ClipboardDetails", "render_record_details"]
