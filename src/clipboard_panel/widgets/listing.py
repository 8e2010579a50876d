"""List rendering helpers for clipboard records."""

from __future__ import annotations

import re
from collections.abc import Mapping

from rich.markup import escape as escape_markup

from clipboard_panel.filters import FILTER_LABELS, FILTER_VALUES
from clipboard_panel.keys import format_timestamp
from clipboard_panel.models import ContentInfo, HistoryRecord, PanelState

PANEL_COLORS: dict[str, str] = {
    "accent": "#66d9ef",
    "green": "#a6e22e",
    "yellow": "#e6db74",
    "orange": "#fd971f",
    "pink": "#f92672",
    "muted": "#75715e",
}

_ICON_SETS: dict[str, dict[str, str]] = {
    "unicode": {
        "clipboard": "📋",
        "color-palette": "🎨",
        "image": "🖼",
        "data-view": "🧾",
        "link": "🔗",
        "email": "✉",
        "phone": "☎",
        "location": "🌐",
        "password": "🔑",
        "document": "📄",
        "folder": "📁",
        "braces": "{}",
        "code": "</>",
        "text": "¶",
        "text-style": "¶",
        "application": "▣",
        "favorite": "★",
        "checked": "☑",
        "unchecked": "☐",
    },
    "ascii": {
        "clipboard": "[ ]",
        "color-palette": "#",
        "image": "img",
        "data-view": "dat",
        "link": "url",
        "email": "@",
        "phone": "tel",
        "location": "ip",
        "password": "pin",
        "document": "doc",
        "folder": "dir",
        "braces": "{}",
        "code": "</>",
        "text": "txt",
        "text-style": "txt",
        "application": "app",
        "favorite": "*",
        "checked": "[x]",
        "unchecked": "[ ]",
    },
}
_ACTIVE_ICON_SET = _ICON_SETS["unicode"]
_HEX_SWATCH_PATTERN = re.compile(r"#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})")


def set_ascii_icons(enabled: bool) -> None:
    """Switch icons between Unicode and ASCII modes."""
    global _ACTIVE_ICON_SET
    _ACTIVE_ICON_SET = _ICON_SETS["ascii"] if enabled else _ICON_SETS["unicode"]


def icon_glyph(name: str) -> str:
    return _ACTIVE_ICON_SET.get(name, _ACTIVE_ICON_SET["text"])


def swatch_style(value: str | None) -> str | None:
    """Rich-compatible 6-digit hex for a color swatch (None for functional colors)."""
    if not value or not _HEX_SWATCH_PATTERN.fullmatch(value):
        return None
    digits = value[1:]
    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits[:3])
    return f"#{digits[:6]}"


def render_record_option(
    record: HistoryRecord,
    info: ContentInfo,
    *,
    multi_select_mode: bool = False,
    multi_selected: bool = False,
) -> str:
    """Render a record as Rich markup for OptionList display."""
    prefix_parts: list[str] = []
    if multi_select_mode:
        box = icon_glyph("checked" if multi_selected else "unchecked")
        color = PANEL_COLORS["green"] if multi_selected else PANEL_COLORS["muted"]
        prefix_parts.append(f"[{color}]{escape_markup(box)}[/]")
    prefix_parts.append(escape_markup(icon_glyph(info.icon)))
    if record.is_favorite:
        star = escape_markup(icon_glyph("favorite"))
        prefix_parts.append(f"[{PANEL_COLORS['yellow']}]{star}[/]")

    preview = escape_markup(info.preview_text)
    swatch = swatch_style(info.color_swatch)
    if swatch:
        preview = f"[on {swatch}]  [/] {preview}"
    title = f"{' '.join(prefix_parts)} {preview}"

    meta_parts = [
        f"[{PANEL_COLORS['accent']}]{escape_markup(info.label)}[/]",
        f"[dim]{escape_markup(format_timestamp(record.timestamp))}[/]",
    ]
    if info.secondary_text:
        meta_parts.append(f"[dim italic]{escape_markup(info.secondary_text)}[/]")
    return "\n".join([title, "  ".join(meta_parts)])


def render_status_line(
    state: PanelState,
    counts: Mapping[str, int],
    selected_filter: str,
) -> str:
    """Build the status bar: filter pills, paging and loading flags."""
    pills: list[str] = []
    for value in FILTER_VALUES:
        count = counts.get(value, 0)
        if value != "all" and count == 0:
            continue
        label = f"{FILTER_LABELS[value]} {count}"
        if value == selected_filter:
            pills.append(f"[reverse]{escape_markup(label)}[/]")
        else:
            pills.append(f"[dim]{escape_markup(label)}[/]")

    listing = state.listing
    parts = ["  ".join(pills), f"{len(listing.items)}/{listing.total}"]
    if state.selection.multi_select_mode:
        parts.append(f"[{PANEL_COLORS['green']}]{state.multi_selected_count} marked[/]")
    if state.is_loading:
        parts.append(f"[{PANEL_COLORS['orange']}]Loading...[/]")
    elif state.is_loading_more:
        parts.append(f"[{PANEL_COLORS['orange']}]Loading more...[/]")
    elif listing.can_load_more:
        parts.append("[dim]PgDn for more[/]")
    return " │ ".join(parts)


__all__ = [
    "PANEL_COLORS",
    "icon_glyph",
    "render_record_option",
    "render_status_line",
    "set_ascii_icons",
    "swatch_style",
]
