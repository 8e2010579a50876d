"""UI-facing copy builders for errors and notifications."""

from __future__ import annotations


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_clipboard_unavailable_error() -> str:
    return build_actionable_error(
        "copy to the system clipboard",
        why="no clipboard tool is available in this environment",
        next_step="install wl-clipboard, xclip or xsel and restart the panel",
    )


def build_apply_unavailable_error() -> str:
    return build_actionable_error(
        "paste into the active app",
        why="neither the store nor a host RPC channel supports it",
        next_step="set rpc_url in the config or copy with Enter instead",
    )


def build_missing_store_error() -> str:
    return build_actionable_error(
        "start the clipboard panel",
        why="no history store URL is configured",
        next_step="pass --store-url, set store_url in the config, or use --demo",
    )


def build_bulk_notification(verb: str, item_count: int) -> str:
    """Build notification text for a finished bulk action."""
    return f"{verb} {item_count} item{'s' if item_count != 1 else ''}"


__all__ = [
    "build_actionable_error",
    "build_apply_unavailable_error",
    "build_bulk_notification",
    "build_clipboard_unavailable_error",
    "build_missing_store_error",
    "build_next_step_hint",
]
