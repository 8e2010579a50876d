"""Collaborator adapters: history store, clipboard, RPC channel, blobs."""

from clipboard_panel.services.blob_service import DefaultBlobResolver, ensure_file_url
from clipboard_panel.services.channel_service import HttpRpcChannel
from clipboard_panel.services.clipboard_service import (
    SubprocessClipboardWriter,
    build_clipboard_writer,
)
from clipboard_panel.services.http_store import HttpHistoryStore
from clipboard_panel.services.memory_store import InMemoryHistoryStore, build_sample_store

__all__ = [
    "DefaultBlobResolver",
    "HttpHistoryStore",
    "HttpRpcChannel",
    "InMemoryHistoryStore",
    "SubprocessClipboardWriter",
    "build_clipboard_writer",
    "build_sample_store",
    "ensure_file_url",
]
