"""System clipboard writes through platform command-line tools."""

from __future__ import annotations

import asyncio
import logging
import platform
import shutil
import subprocess
from collections.abc import Callable

from clipboard_panel.action_messages import build_actionable_error
from clipboard_panel.errors import CapabilityUnavailableError, ClipboardPanelError
from clipboard_panel.models import Blob

logger = logging.getLogger(__name__)

SUBPROCESS_TIMEOUT = 5
TEXT_MIME = "text/plain"
HTML_MIME = "text/html"


def get_clipboard_command_plan(
    system: str, mime_type: str = TEXT_MIME
) -> tuple[list[list[str]], str | None] | None:
    """Return clipboard command candidates and input encoding for a platform.

    A ``None`` encoding means the payload is passed through as raw bytes.
    Returns None when the platform has no tool for ``mime_type``.
    """
    if mime_type == TEXT_MIME:
        if system == "Darwin":
            return ([["pbcopy"]], "utf-8")
        if system == "Linux":
            return (
                [
                    ["wl-copy"],
                    ["xclip", "-selection", "clipboard"],
                    ["xsel", "--clipboard", "--input"],
                ],
                "utf-8",
            )
        if system == "Windows":
            return ([["clip"]], "utf-16")
        return None
    if system == "Linux":
        encoding = "utf-8" if mime_type.startswith("text/") else None
        return (
            [
                ["wl-copy", "--type", mime_type],
                ["xclip", "-selection", "clipboard", "-t", mime_type],
            ],
            encoding,
        )
    return None


class SubprocessClipboardWriter:
    """``ClipboardWriter`` that pipes payloads into clipboard tools.

    Each tool call carries a single type, so a rich write puts the plain-text
    flavour on the clipboard. With ``prefer_html`` set, platforms that have an
    HTML target get the markup instead.
    """

    def __init__(
        self,
        *,
        system: str | None = None,
        timeout: float = SUBPROCESS_TIMEOUT,
        runner: Callable[..., object] = subprocess.run,
        which: Callable[[str], str | None] = shutil.which,
        prefer_html: bool = False,
    ) -> None:
        self.system = system or platform.system()
        self.timeout = timeout
        self.prefer_html = prefer_html
        self._runner = runner
        self._which = which

    def is_available(self) -> bool:
        plan = get_clipboard_command_plan(self.system)
        if plan is None:
            return False
        commands, _ = plan
        return any(self._which(command[0]) for command in commands)

    def _run(self, commands: list[list[str]], payload: bytes) -> None:
        for index, command in enumerate(commands):
            try:
                self._runner(  # nosec B603
                    command,
                    input=payload,
                    check=True,
                    shell=False,
                    timeout=self.timeout,
                )
                return
            except (FileNotFoundError, subprocess.CalledProcessError):
                if index == len(commands) - 1:
                    raise

    def _write(self, mime_type: str, payload: str | bytes) -> None:
        plan = get_clipboard_command_plan(self.system, mime_type)
        if plan is None:
            raise CapabilityUnavailableError(
                build_actionable_error(
                    "copy to the clipboard",
                    why=f"no clipboard tool for {mime_type} on {self.system}",
                    next_step="install wl-clipboard or xclip, or copy as text",
                )
            )
        commands, encoding = plan
        if isinstance(payload, str):
            data = payload.encode(encoding or "utf-8")
        else:
            data = payload
        try:
            self._run(commands, data)
        except (
            subprocess.CalledProcessError,
            FileNotFoundError,
            subprocess.TimeoutExpired,
            OSError,
        ) as exc:
            logger.warning("Clipboard write failed: %s", exc)
            raise ClipboardPanelError(f"Clipboard write failed: {exc}", original_error=exc) from exc

    async def write_text(self, text: str) -> None:
        await asyncio.to_thread(self._write, TEXT_MIME, text)

    async def write_rich(self, *, html: str, text: str) -> None:
        if self.prefer_html and get_clipboard_command_plan(self.system, HTML_MIME) is not None:
            await asyncio.to_thread(self._write, HTML_MIME, html)
            return
        await self.write_text(text)

    async def write_image(self, blob: Blob) -> None:
        mime_type = blob.mime_type if blob.mime_type.startswith("image/") else "image/png"
        await asyncio.to_thread(self._write, mime_type, blob.data)


def build_clipboard_writer(
    *,
    system: str | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> SubprocessClipboardWriter | None:
    """Return a clipboard writer, or None when no clipboard tool is installed."""
    writer = SubprocessClipboardWriter(system=system, which=which)
    if not writer.is_available():
        logger.info("No clipboard tool found for %s", writer.system)
        return None
    return writer


__all__ = [
    "HTML_MIME",
    "SUBPROCESS_TIMEOUT",
    "TEXT_MIME",
    "SubprocessClipboardWriter",
    "build_clipboard_writer",
    "get_clipboard_command_plan",
]
