"""
The Home tab: a live, per-account list with optimistic local edits.

Local state mirrors the latest snapshot. Writes update the mirror first and
roll it back if the backend rejects them; the next snapshot is authoritative.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Optional

from backend.store import DocumentStore, Query, StoredDocument, StoreError
from shared.constants import ITEMS_COLLECTION
from shared.errors import UserFacingError
from shared.types import AuthUser, ListEntry, from_document, to_document
from shared.utils import now_iso, parse_timestamp, temp_id
from shared.validation import validate_item_text

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Could not load your items"
ADD_FAILED_MESSAGE = "Could not add the item"
UPDATE_FAILED_MESSAGE = "Could not update the item"
DELETE_FAILED_MESSAGE = "Could not delete the item"
CLEAR_FAILED_MESSAGE = "Could not clear your list"


def sort_newest_first(entries: list[ListEntry]) -> list[ListEntry]:
    return sorted(entries, key=lambda e: parse_timestamp(e.created_at), reverse=True)


@dataclass
class PendingChange:
    """
    A destructive change already applied locally and awaiting the user's
    answer. Exactly one of `confirm` or `cancel` takes effect.
    """

    prompt: str
    on_confirm: Callable[[], None]
    on_cancel: Callable[[], None]
    settled: bool = False

    def confirm(self) -> None:
        if self.settled:
            return
        self.settled = True
        self.on_confirm()

    def cancel(self) -> None:
        if self.settled:
            return
        self.settled = True
        self.on_cancel()


class ItemListScreen:
    def __init__(self, store: DocumentStore, user: AuthUser):
        self.store = store
        self.user = user
        self.items: list[ListEntry] = []
        self.editing_id: Optional[str] = None
        self.loading = True
        self.saving = False
        self.error: Optional[str] = None
        self.client_sorted = False
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._lock = threading.RLock()

    def _ordered_query(self) -> Query:
        return (
            Query(ITEMS_COLLECTION)
            .where("userId", "==", self.user.uid)
            .ordered("createdAt", descending=True)
        )

    def start(self) -> None:
        if self._unsubscribe:
            return
        logger.info("Loading items for %s", self.user.uid)
        try:
            self._unsubscribe = self.store.listen(
                self._ordered_query(), self._on_snapshot, self._on_ordered_error
            )
        except StoreError as e:
            self._on_ordered_error(e)

    def stop(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_ordered_error(self, error: Exception) -> None:
        if self.client_sorted:
            self._on_load_error(error)
            return
        logger.warning("Ordered item query failed, sorting locally: %s", error)
        self.stop()
        self.client_sorted = True
        try:
            self._unsubscribe = self.store.listen(
                self._ordered_query().unordered(),
                self._on_snapshot,
                self._on_load_error,
            )
        except StoreError as e:
            self._on_load_error(e)

    def _on_load_error(self, error: Exception) -> None:
        logger.error("Could not load items for %s: %s", self.user.uid, error)
        with self._lock:
            self.error = LOAD_FAILED_MESSAGE
            self.loading = False

    def _on_snapshot(self, docs: list[StoredDocument]) -> None:
        entries = [from_document(ListEntry, doc.id, doc.data) for doc in docs]
        if self.client_sorted:
            entries = sort_newest_first(entries)
        with self._lock:
            self.items = entries
            self.loading = False
            self.error = None
        logger.info("%d items loaded for %s", len(entries), self.user.uid)

    def find(self, entry_id: str) -> Optional[ListEntry]:
        with self._lock:
            return next((e for e in self.items if e.id == entry_id), None)

    def start_edit(self, entry_id: str) -> str:
        """Enters edit mode for an entry and returns its text for the input."""
        entry = self.find(entry_id)
        if entry is None:
            raise UserFacingError("Item not found")
        if entry.is_pending or self.saving:
            raise UserFacingError("Wait until the item is saved")
        self.editing_id = entry_id
        return entry.text

    def cancel_edit(self) -> None:
        self.editing_id = None

    def save(self, text: str) -> ListEntry:
        validate_item_text(text)
        self.saving = True
        try:
            editing_id = self.editing_id
            if editing_id:
                saved = self._update(editing_id, text)
                if self.editing_id == editing_id:
                    self.editing_id = None
                return saved
            return self._create(text)
        finally:
            self.saving = False

    def update(self, entry_id: str, text: str) -> ListEntry:
        """Writes new text for one entry without touching the edit mode."""
        validate_item_text(text)
        entry = self.find(entry_id)
        if entry is None:
            raise UserFacingError("Item not found")
        if entry.is_pending:
            raise UserFacingError("Wait until the item is saved")
        self.saving = True
        try:
            return self._update(entry_id, text)
        finally:
            self.saving = False

    def _update(self, entry_id: str, text: str) -> ListEntry:
        previous = self.find(entry_id)
        if previous is not None:
            self._replace(entry_id, replace(previous, text=text))
        try:
            self.store.update(
                ITEMS_COLLECTION, entry_id, {"text": text, "updatedAt": now_iso()}
            )
        except StoreError as e:
            logger.error("Update of item %s failed: %s", entry_id, e)
            if previous is not None:
                self._replace(entry_id, previous)
            raise UserFacingError(UPDATE_FAILED_MESSAGE) from e
        saved = self.find(entry_id)
        if saved is None:
            saved = ListEntry(id=entry_id, text=text, user_id=self.user.uid)
        return saved

    def _create(self, text: str) -> ListEntry:
        timestamp = now_iso()
        placeholder = ListEntry(
            id=temp_id(),
            text=text,
            user_id=self.user.uid,
            user_email=self.user.email,
            created_at=timestamp,
            updated_at=timestamp,
        )
        with self._lock:
            self.items = [placeholder] + self.items
        try:
            new_id = self.store.add(ITEMS_COLLECTION, to_document(placeholder))
        except StoreError as e:
            logger.error("Adding item failed: %s", e)
            with self._lock:
                self.items = [x for x in self.items if x.id != placeholder.id]
            raise UserFacingError(ADD_FAILED_MESSAGE) from e
        saved = replace(placeholder, id=new_id)
        # The snapshot may already have replaced the placeholder.
        self._replace(placeholder.id, saved)
        return saved

    def _replace(self, entry_id: str, entry: ListEntry) -> None:
        with self._lock:
            self.items = [entry if x.id == entry_id else x for x in self.items]

    def _restore(self, entries: list[ListEntry]) -> None:
        with self._lock:
            present = {x.id for x in self.items}
            missing = [e for e in entries if e.id not in present]
            self.items = sort_newest_first(self.items + missing)

    def request_delete(self, entry_id: str) -> PendingChange:
        entry = self.find(entry_id)
        if entry is None:
            raise UserFacingError("Item not found")
        if entry.is_pending or self.saving:
            raise UserFacingError("Wait until the item is saved")
        with self._lock:
            self.items = [x for x in self.items if x.id != entry_id]

        def confirm() -> None:
            try:
                self.store.delete(ITEMS_COLLECTION, entry_id)
            except StoreError as e:
                logger.error("Deleting item %s failed: %s", entry_id, e)
                self._restore([entry])
                raise UserFacingError(DELETE_FAILED_MESSAGE) from e

        return PendingChange(
            prompt="Are you sure you want to delete this item?",
            on_confirm=confirm,
            on_cancel=lambda: self._restore([entry]),
        )

    def request_clear(self) -> Optional[PendingChange]:
        with self._lock:
            backup = list(self.items)
            if not backup:
                return None
            self.items = []

        def confirm() -> None:
            try:
                for entry in backup:
                    if entry.is_pending:
                        continue
                    self.store.delete(ITEMS_COLLECTION, entry.id)
            except StoreError as e:
                logger.error("Clearing list for %s failed: %s", self.user.uid, e)
                with self._lock:
                    self.items = backup
                raise UserFacingError(CLEAR_FAILED_MESSAGE) from e

        def cancel() -> None:
            with self._lock:
                self.items = backup

        return PendingChange(
            prompt=f"Delete all {len(backup)} items from your list?",
            on_confirm=confirm,
            on_cancel=cancel,
        )
