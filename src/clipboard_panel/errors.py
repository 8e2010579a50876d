"""Exception types raised by clipboard panel collaborators."""

from __future__ import annotations


class ClipboardPanelError(Exception):
    """Base exception for clipboard panel failures."""

    def __init__(self, message: str, original_error: BaseException | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class StoreError(ClipboardPanelError):
    """The history store rejected or failed a request."""


class CapabilityUnavailableError(ClipboardPanelError):
    """A required environment capability (clipboard, RPC channel) is missing."""


class ApplyFailedError(ClipboardPanelError):
    """Applying a record to the active application did not succeed."""


class BlobResolveError(ClipboardPanelError):
    """Image content could not be resolved to bytes."""


__all__ = [
    "ApplyFailedError",
    "BlobResolveError",
    "CapabilityUnavailableError",
    "ClipboardPanelError",
    "StoreError",
]
