"""
Document store abstraction for Cloud Firestore and an in-memory test implementation.

Screens only talk to the `DocumentStore` protocol: one-shot reads, writes, and
snapshot listeners that re-deliver a query's full result set whenever it changes.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1 import SERVER_TIMESTAMP
from google.cloud.firestore_v1.base_query import FieldFilter
from google.cloud.firestore_v1.query import Query as FirestoreQuery

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[List["StoredDocument"]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]

SUPPORTED_OPERATORS = ("==", "!=", "<", "<=", ">", ">=")


class StoreError(Exception):
    """Any failure reported by the document backend."""


class MissingIndexError(StoreError):
    """The backend refused a query because it needs a composite index."""


@dataclass(frozen=True)
class FieldCondition:
    field: str
    op: str
    value: Any

    def matches(self, data: dict) -> bool:
        if self.field not in data:
            return False
        actual = data[self.field]
        if self.op == "==":
            return actual == self.value
        if self.op == "!=":
            return actual != self.value
        try:
            if self.op == "<":
                return actual < self.value
            if self.op == "<=":
                return actual <= self.value
            if self.op == ">":
                return actual > self.value
            if self.op == ">=":
                return actual >= self.value
        except TypeError:
            # Firestore never matches range filters across value types.
            return False
        raise ValueError(f"Unsupported operator: {self.op}")


@dataclass(frozen=True)
class Query:
    """Immutable description of a filtered, optionally ordered collection read."""

    collection: str
    conditions: tuple[FieldCondition, ...] = ()
    order_by: Optional[str] = None
    descending: bool = False

    def where(self, field_path: str, op: str, value: Any) -> "Query":
        if op not in SUPPORTED_OPERATORS:
            raise ValueError(f"Unsupported operator: {op}")
        return replace(
            self, conditions=self.conditions + (FieldCondition(field_path, op, value),)
        )

    def ordered(self, field_path: str, *, descending: bool = False) -> "Query":
        return replace(self, order_by=field_path, descending=descending)

    def unordered(self) -> "Query":
        return replace(self, order_by=None, descending=False)

    def matches(self, data: dict) -> bool:
        return all(condition.matches(data) for condition in self.conditions)


@dataclass
class StoredDocument:
    id: str
    data: dict = field(default_factory=dict)


class DocumentStore(Protocol):
    """Operations the screens need from the document database."""

    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        ...

    def query(self, query: Query) -> list[StoredDocument]:
        ...

    def add(self, collection: str, data: dict) -> str:
        ...

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    def update(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        ...

    def listen(
        self,
        query: Query,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        ...


@dataclass(eq=False)
class _Listener:
    query: Query
    on_snapshot: SnapshotCallback
    on_error: Optional[ErrorCallback]
    last_delivered: Optional[list[tuple[str, dict]]] = None
    active: bool = True


class InMemoryDocumentStore:
    """Simple in-memory document database for development and tests."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self._listeners: list[_Listener] = []
        self._lock = threading.RLock()

    def reset(self) -> None:
        """Clear all stored data and listeners (useful in tests)."""
        with self._lock:
            self.collections.clear()
            for listener in self._listeners:
                listener.active = False
            self._listeners.clear()

    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        with self._lock:
            data = self.collections.get(collection, {}).get(doc_id)
            if data is None:
                return None
            return StoredDocument(id=doc_id, data=copy.deepcopy(data))

    def query(self, query: Query) -> list[StoredDocument]:
        with self._lock:
            try:
                matched = self._evaluate(query)
            except TypeError as e:
                raise StoreError(str(e)) from e
            return [
                StoredDocument(id=doc_id, data=copy.deepcopy(data))
                for doc_id, data in matched
            ]

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self._write(collection, doc_id, data, merge=False)
        return doc_id

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        self._write(collection, doc_id, data, merge=False)

    def update(self, collection: str, doc_id: str, data: dict) -> None:
        with self._lock:
            if doc_id not in self.collections.get(collection, {}):
                raise StoreError(f"No document to update: {collection}/{doc_id}")
        self._write(collection, doc_id, data, merge=True)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self.collections.get(collection, {}).pop(doc_id, None)
        self._notify()

    def listen(
        self,
        query: Query,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        listener = _Listener(query=query, on_snapshot=on_snapshot, on_error=on_error)
        with self._lock:
            self._listeners.append(listener)
        self._deliver(listener)

        def unsubscribe() -> None:
            with self._lock:
                listener.active = False
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _write(self, collection: str, doc_id: str, data: dict, *, merge: bool) -> None:
        resolved = {
            key: _resolve_sentinel(value) for key, value in data.items()
        }
        with self._lock:
            docs = self.collections.setdefault(collection, {})
            if merge:
                docs[doc_id] = {**docs[doc_id], **copy.deepcopy(resolved)}
            else:
                docs[doc_id] = copy.deepcopy(resolved)
        self._notify()

    def _evaluate(self, query: Query) -> list[tuple[str, dict]]:
        docs = self.collections.get(query.collection, {})
        matched = [
            (doc_id, data) for doc_id, data in docs.items() if query.matches(data)
        ]
        if query.order_by:
            # Firestore omits documents lacking the ordered field.
            matched = [item for item in matched if query.order_by in item[1]]
            matched.sort(key=lambda item: item[1][query.order_by], reverse=query.descending)
        return matched

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            self._deliver(listener)

    def _deliver(self, listener: _Listener) -> None:
        with self._lock:
            if not listener.active:
                return
            try:
                results = copy.deepcopy(self._evaluate(listener.query))
            except TypeError as e:
                error: Optional[Exception] = StoreError(str(e))
                results = None
            else:
                error = None
                if results == listener.last_delivered:
                    return
                listener.last_delivered = copy.deepcopy(results)
        if error is not None:
            if listener.on_error:
                listener.on_error(error)
            return
        listener.on_snapshot(
            [StoredDocument(id=doc_id, data=data) for doc_id, data in results]
        )


def _resolve_sentinel(value: Any) -> Any:
    if value is SERVER_TIMESTAMP:
        return datetime.now(timezone.utc)
    return value


def _to_store_error(e: google_exceptions.GoogleAPICallError) -> StoreError:
    if isinstance(e, google_exceptions.FailedPrecondition) and "index" in str(e).lower():
        return MissingIndexError(str(e))
    return StoreError(str(e))


class FirestoreDocumentStore:
    """
    Cloud Firestore implementation backed by the firebase_admin client.

    Listener callbacks arrive on the Firestore watch thread, not the caller's.
    """

    def __init__(self, client):
        self.client = client

    def _build(self, query: Query):
        ref = self.client.collection(query.collection)
        for condition in query.conditions:
            ref = ref.where(
                filter=FieldFilter(condition.field, condition.op, condition.value)
            )
        if query.order_by:
            direction = (
                FirestoreQuery.DESCENDING if query.descending else FirestoreQuery.ASCENDING
            )
            ref = ref.order_by(query.order_by, direction=direction)
        return ref

    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        try:
            snapshot = self.client.collection(collection).document(doc_id).get()
        except google_exceptions.GoogleAPICallError as e:
            raise _to_store_error(e) from e
        if not snapshot.exists:
            return None
        return StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})

    def query(self, query: Query) -> list[StoredDocument]:
        try:
            return [
                StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})
                for snapshot in self._build(query).stream()
            ]
        except google_exceptions.GoogleAPICallError as e:
            raise _to_store_error(e) from e

    def add(self, collection: str, data: dict) -> str:
        try:
            _, doc_ref = self.client.collection(collection).add(data)
        except google_exceptions.GoogleAPICallError as e:
            raise _to_store_error(e) from e
        return doc_ref.id

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        try:
            self.client.collection(collection).document(doc_id).set(data)
        except google_exceptions.GoogleAPICallError as e:
            raise _to_store_error(e) from e

    def update(self, collection: str, doc_id: str, data: dict) -> None:
        try:
            self.client.collection(collection).document(doc_id).update(data)
        except google_exceptions.GoogleAPICallError as e:
            raise _to_store_error(e) from e

    def delete(self, collection: str, doc_id: str) -> None:
        try:
            self.client.collection(collection).document(doc_id).delete()
        except google_exceptions.GoogleAPICallError as e:
            raise _to_store_error(e) from e

    def listen(
        self,
        query: Query,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        firestore_query = self._build(query)
        if query.order_by:
            # The watch stream drops index errors silently; surface them here.
            try:
                list(firestore_query.limit(1).stream())
            except google_exceptions.GoogleAPICallError as e:
                raise _to_store_error(e) from e

        def callback(doc_snapshots, changes, read_time):
            try:
                on_snapshot(
                    [
                        StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})
                        for snapshot in doc_snapshots
                    ]
                )
            except Exception as e:
                logger.exception("Snapshot handler failed for %s", query.collection)
                if on_error:
                    on_error(e)

        watch = firestore_query.on_snapshot(callback)
        return watch.unsubscribe
