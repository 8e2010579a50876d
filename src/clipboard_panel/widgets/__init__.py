"""Widget and rendering helpers for the Textual panel."""

from clipboard_panel.widgets.details import ClipboardDetails, render_record_details
from clipboard_panel.widgets.listing import (
    render_record_option,
    render_status_line,
    set_ascii_icons,
)

__all__ = [
    "ClipboardDetails",
    "render_record_details",
    "render_record_option",
    "render_status_line",
    "set_ascii_icons",
]
