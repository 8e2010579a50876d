"""Store-confirmed mutations with per-operation pending guards.

Local state only changes after the store (or clipboard/RPC collaborator)
confirms; failures land in the shared error slot and leave the list as it
was. A repeated call while the same operation is pending is dropped, and so
is a call without the record it needs.
"""

from __future__ import annotations

import copy
import logging

from clipboard_panel.action_messages import (
    build_apply_unavailable_error,
    build_clipboard_unavailable_error,
)
from clipboard_panel.classify import recover_file_list
from clipboard_panel.errors import ApplyFailedError, CapabilityUnavailableError
from clipboard_panel.keys import item_key
from clipboard_panel.models import HistoryRecord
from clipboard_panel.selection import SelectionTracker
from clipboard_panel.services.channel_service import APPLY_COMMAND, HIDE_COMMAND
from clipboard_panel.services.http_store import APPLY_FAILED_MESSAGE, apply_failure
from clipboard_panel.services.interfaces import (
    BlobResolver,
    ClipboardWriter,
    HistoryStore,
    RpcChannel,
)
from clipboard_panel.session import PanelSession
from clipboard_panel.state import (
    FavoriteUpdate,
    HistoryCleared,
    RecordsRemoved,
    apply_mutation_result,
    begin_operation,
    end_operation,
    set_error,
)

logger = logging.getLogger(__name__)


def file_list_for_copy(record: HistoryRecord) -> list[str]:
    """Paths of a ``files`` record, from the drop list or the content."""
    raw = record.raw_content
    if isinstance(raw, (list, tuple)):
        paths = [str(entry).strip() for entry in raw]
        paths = [path for path in paths if path]
        if paths:
            return paths
    return recover_file_list(record.content, raw, normalize=False)


class MutationCoordinator:
    """Apply favorite/delete/clear/apply/copy operations to store and list."""

    def __init__(
        self,
        session: PanelSession,
        store: HistoryStore,
        tracker: SelectionTracker,
        *,
        blob_resolver: BlobResolver,
        clipboard: ClipboardWriter | None = None,
        channel: RpcChannel | None = None,
    ) -> None:
        self._session = session
        self._store = store
        self._tracker = tracker
        self._blob_resolver = blob_resolver
        self._clipboard = clipboard
        self._channel = channel

    # -- guards ---------------------------------------------------------------

    def _begin(self, name: str) -> bool:
        state = self._session.state
        if state.is_pending(name):
            return False
        self._session.commit(begin_operation(state, name))
        return True

    def _end(self, name: str) -> None:
        self._session.commit(end_operation(self._session.state, name))

    def _report(self, error: BaseException) -> None:
        self._session.commit(set_error(self._session.state, error))

    def _selected(self) -> HistoryRecord | None:
        return self._session.state.selection.selected_item

    # -- apply / copy ---------------------------------------------------------

    async def apply_to_active_app(self, record: HistoryRecord | None = None) -> bool:
        """Paste ``record`` (default: the selection) into the focused app."""
        target = record if record is not None else self._selected()
        if target is None or not self._begin("apply"):
            return False
        try:
            payload = copy.deepcopy(target)
            if self._store.supports_apply_to_active_app:
                if not await self._store.apply_to_active_app(record=payload, hide_window=True):
                    raise ApplyFailedError(APPLY_FAILED_MESSAGE)
                return True
            if self._channel is None:
                raise CapabilityUnavailableError(build_apply_unavailable_error())
            response = await self._channel.send(
                APPLY_COMMAND, {"item": payload.to_dict(), "hideWindow": True}
            )
            failure = apply_failure(response)
            if failure is not None:
                raise failure
            return True
        except Exception as exc:
            logger.warning("Failed to apply clipboard item %s", item_key(target), exc_info=True)
            self._report(exc)
            return False
        finally:
            self._end("apply")

    async def _write_to_clipboard(self, clipboard: ClipboardWriter, record: HistoryRecord) -> None:
        if record.type == "image":
            blob = await self._blob_resolver.resolve(record.content)
            await clipboard.write_image(blob)
            return
        if record.type == "text" and isinstance(record.raw_content, str) and record.raw_content:
            await clipboard.write_rich(html=record.raw_content, text=record.content or "")
            return
        if record.type == "files":
            files = file_list_for_copy(record)
            if files:
                await clipboard.write_text("\n".join(files))
                return
        await clipboard.write_text(record.content or "")

    async def copy_to_system_clipboard(self, record: HistoryRecord | None = None) -> bool:
        """Write ``record`` (default: the selection) to the system clipboard."""
        target = record if record is not None else self._selected()
        if target is None or not self._begin("copy"):
            return False
        try:
            if self._clipboard is None:
                raise CapabilityUnavailableError(build_clipboard_unavailable_error())
            await self._write_to_clipboard(self._clipboard, copy.deepcopy(target))
            return True
        except Exception as exc:
            logger.warning("Failed to copy clipboard item %s", item_key(target), exc_info=True)
            self._report(exc)
            return False
        finally:
            self._end("copy")

    # -- single-record mutations ----------------------------------------------

    async def toggle_favorite(self) -> None:
        selected = self._selected()
        if selected is None or selected.id is None or not self._begin("favorite"):
            return
        next_state = not selected.is_favorite
        try:
            await self._store.set_favorite(record_id=selected.id, is_favorite=next_state)
            self._session.commit(
                apply_mutation_result(
                    self._session.state, FavoriteUpdate((item_key(selected),), next_state)
                )
            )
        except Exception as exc:
            logger.warning("Failed to update favorite for %s", selected.id, exc_info=True)
            self._report(exc)
        finally:
            self._end("favorite")

    async def delete_selected(self) -> None:
        selected = self._selected()
        if selected is None or selected.id is None or not self._begin("delete"):
            return
        try:
            await self._store.delete_item(record_id=selected.id)
            self._session.commit(
                apply_mutation_result(self._session.state, RecordsRemoved((item_key(selected),)))
            )
            self._tracker.ensure_selection()
        except Exception as exc:
            logger.warning("Failed to delete clipboard item %s", selected.id, exc_info=True)
            self._report(exc)
        finally:
            self._end("delete")

    async def clear_history(self) -> None:
        if not self._begin("clear"):
            return
        try:
            await self._store.clear_all()
            self._session.commit(apply_mutation_result(self._session.state, HistoryCleared()))
            self._tracker.ensure_selection()
        except Exception as exc:
            logger.warning("Failed to clear clipboard history", exc_info=True)
            self._report(exc)
        finally:
            self._end("clear")

    # -- bulk mutations -------------------------------------------------------

    def _bulk_targets(self) -> tuple[tuple[str, ...], list[HistoryRecord]]:
        state = self._session.state
        keys = state.selection.multi_selected_keys
        targets = set(keys)
        synced = [r for r in state.items if r.id is not None and item_key(r) in targets]
        return keys, synced

    async def bulk_delete(self) -> int:
        """Delete the multi-selection; returns how many store deletes succeeded.

        Records without a store id are skipped by the store loop. If every
        call succeeds the whole targeted set leaves the list and the
        multi-selection is cleared. If a call fails the loop stops, only the
        records already confirmed are removed locally, and the rest stay
        multi-selected for a retry.
        """
        keys, synced = self._bulk_targets()
        if not keys or not self._begin("bulk_delete"):
            return 0
        confirmed: list[str] = []
        try:
            for record in synced:
                await self._store.delete_item(record_id=record.id)
                confirmed.append(item_key(record))
        except Exception as exc:
            logger.warning(
                "Bulk delete aborted after %d of %d items",
                len(confirmed),
                len(synced),
                exc_info=True,
            )
            if confirmed:
                self._session.commit(
                    apply_mutation_result(self._session.state, RecordsRemoved(tuple(confirmed)))
                )
                self._tracker.ensure_selection()
            self._report(exc)
            return len(confirmed)
        else:
            state = apply_mutation_result(
                self._session.state, RecordsRemoved(keys, count=len(confirmed))
            )
            self._session.commit(state)
            self._tracker.clear_multi_selection()
            self._tracker.ensure_selection()
            return len(confirmed)
        finally:
            self._end("bulk_delete")

    async def bulk_favorite(self) -> int:
        """Favorite the multi-selection; same abort rule as ``bulk_delete``."""
        keys, synced = self._bulk_targets()
        if not keys or not self._begin("bulk_favorite"):
            return 0
        confirmed: list[str] = []
        try:
            for record in synced:
                await self._store.set_favorite(record_id=record.id, is_favorite=True)
                confirmed.append(item_key(record))
        except Exception as exc:
            logger.warning(
                "Bulk favorite aborted after %d of %d items",
                len(confirmed),
                len(synced),
                exc_info=True,
            )
            if confirmed:
                self._session.commit(
                    apply_mutation_result(
                        self._session.state, FavoriteUpdate(tuple(confirmed), True)
                    )
                )
            self._report(exc)
            return len(confirmed)
        else:
            self._session.commit(
                apply_mutation_result(self._session.state, FavoriteUpdate(keys, True))
            )
            return len(confirmed)
        finally:
            self._end("bulk_favorite")

    # -- window ---------------------------------------------------------------

    async def hide_window(self) -> bool:
        """Ask the host to hide the panel; best effort, never reported."""
        if self._channel is None:
            return False
        try:
            await self._channel.send(HIDE_COMMAND)
        except Exception:
            logger.warning("Failed to hide the panel window", exc_info=True)
            return False
        return True


__all__ = ["MutationCoordinator", "file_list_for_copy"]
