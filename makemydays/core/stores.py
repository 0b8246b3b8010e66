"""Document stores backing the ``events``, ``bookings`` and ``users`` collections.

Each store exposes the same small surface: read queries return a
:class:`Fetched` result that callers must inspect for an
``Fault.UNAVAILABLE`` fault, single-document writes are blind overwrites, and
:meth:`DocumentStore.run_transaction` provides the optimistic
read-modify-write primitive.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

import requests

from makemydays.core.errors import PermissionDeniedError, StoreError, TransactionConflict
from makemydays.core.supabase_api import SupabaseClient, SupabaseError, SupabaseSession

EVENTS = "events"
BOOKINGS = "bookings"
USERS = "users"

DEFAULT_TRANSACTION_ATTEMPTS = 5

COMMIT_FUNCTION = "commit_documents"
REVISION_CONFLICT_CODE = "40001"

Document = Dict[str, Any]
T = TypeVar("T")

_LOGGER = logging.getLogger(__name__)


class Fault(Enum):
    """Reasons a read could not produce an authoritative result."""

    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class Fetched(Generic[T]):
    """Outcome of a read: the value plus an optional fault the caller must handle."""

    value: T
    fault: Optional[Fault] = None

    @property
    def ok(self) -> bool:
        return self.fault is None

    @classmethod
    def unavailable(cls, value: T) -> "Fetched[T]":
        return cls(value=value, fault=Fault.UNAVAILABLE)


def _new_revision() -> str:
    return uuid.uuid4().hex


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def newest_first(documents: Iterable[Document]) -> List[Document]:
    """Order documents by ``createdAt`` descending; undated documents go last."""

    dated: List[Tuple[datetime, Document]] = []
    undated: List[Document] = []
    for document in documents:
        created = _parse_timestamp(document.get("createdAt"))
        if created is None:
            undated.append(document)
        else:
            dated.append((created, document))
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [document for _, document in dated] + undated


@dataclass
class PendingWrite:
    """A write buffered by a transaction until commit."""

    collection: str
    doc_id: str
    data: Document
    was_read: bool
    expected_revision: Optional[str]


class Transaction:
    """Buffers reads and writes for an optimistic commit.

    Every document read through the transaction is pinned to the revision seen
    at read time; the commit fails with :class:`TransactionConflict` if any of
    those documents changed in the meantime.
    """

    def __init__(self, store: "DocumentStore") -> None:
        self._store = store
        self._reads: Dict[Tuple[str, str], Optional[Tuple[Document, str]]] = {}
        self._writes: Dict[Tuple[str, str], PendingWrite] = {}

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        key = (collection, doc_id)
        if key not in self._reads:
            self._reads[key] = self._store._read(collection, doc_id)
        snapshot = self._reads[key]
        if snapshot is None:
            return None
        return copy.deepcopy(snapshot[0])

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> None:
        key = (collection, doc_id)
        payload = dict(data)
        if merge:
            pending = self._writes.get(key)
            base = dict(pending.data) if pending else (self.get(collection, doc_id) or {})
            payload = {**base, **payload}
        payload["id"] = doc_id
        snapshot = self._reads.get(key)
        self._writes[key] = PendingWrite(
            collection=collection,
            doc_id=doc_id,
            data=payload,
            was_read=key in self._reads,
            expected_revision=snapshot[1] if snapshot else None,
        )

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """Merge ``fields`` into an existing document."""

        if self.get(collection, doc_id) is None:
            raise StoreError(f"Cannot update missing document {collection}/{doc_id}")
        self.set(collection, doc_id, fields, merge=True)

    @property
    def writes(self) -> List[PendingWrite]:
        return list(self._writes.values())


class DocumentStore(ABC):
    """Interface for collection-oriented persistence."""

    @abstractmethod
    def query(
        self,
        collection: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Fetched[List[Document]]:
        """Return matching documents ordered by ``createdAt`` descending."""

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> Document:
        """Blindly write a document, optionally merging with existing fields."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document if present."""

    @abstractmethod
    def _read(self, collection: str, doc_id: str) -> Optional[Tuple[Document, str]]:
        """Return a document and its revision token."""

    @abstractmethod
    def _commit(self, writes: Sequence[PendingWrite]) -> None:
        """Apply buffered writes, raising :class:`TransactionConflict` on stale reads."""

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        snapshot = self._read(collection, doc_id)
        return snapshot[0] if snapshot else None

    def add(self, collection: str, data: Mapping[str, Any]) -> Document:
        """Write a document under a generated identifier."""

        doc_id = str(data.get("id") or uuid.uuid4().hex)
        return self.set(collection, doc_id, data)

    def run_transaction(
        self,
        fn: Callable[[Transaction], T],
        *,
        max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
    ) -> T:
        """Run ``fn`` inside an optimistic transaction, retrying on conflicts."""

        for attempt in range(1, max_attempts + 1):
            transaction = Transaction(self)
            result = fn(transaction)
            try:
                self._commit(transaction.writes)
            except TransactionConflict:
                _LOGGER.info("Transaction conflict on attempt %d/%d; retrying", attempt, max_attempts)
                continue
            return result
        raise TransactionConflict(f"Transaction did not commit after {max_attempts} attempts")


class InMemoryDocumentStore(DocumentStore):
    """Fallback store used when Supabase is not configured."""

    def __init__(self, *, denied_collections: Iterable[str] = ()) -> None:
        self._collections: MutableMapping[str, Dict[str, Tuple[Document, str]]] = {}
        self._denied = frozenset(denied_collections)
        self._lock = threading.Lock()

    def _check_write(self, collection: str) -> None:
        if collection in self._denied:
            raise PermissionDeniedError(f"Writes to '{collection}' are not permitted")

    def _bucket(self, collection: str) -> Dict[str, Tuple[Document, str]]:
        return self._collections.setdefault(collection, {})

    def query(
        self,
        collection: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Fetched[List[Document]]:
        with self._lock:
            documents = [
                copy.deepcopy(document)
                for document, _ in self._bucket(collection).values()
                if all(document.get(key) == value for key, value in (filters or {}).items())
            ]
        return Fetched(newest_first(documents))

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> Document:
        self._check_write(collection)
        with self._lock:
            bucket = self._bucket(collection)
            payload = dict(data)
            if merge and doc_id in bucket:
                payload = {**bucket[doc_id][0], **payload}
            payload["id"] = doc_id
            bucket[doc_id] = (copy.deepcopy(payload), _new_revision())
        return copy.deepcopy(payload)

    def delete(self, collection: str, doc_id: str) -> None:
        self._check_write(collection)
        with self._lock:
            self._bucket(collection).pop(doc_id, None)

    def _read(self, collection: str, doc_id: str) -> Optional[Tuple[Document, str]]:
        with self._lock:
            entry = self._bucket(collection).get(doc_id)
            if entry is None:
                return None
            return copy.deepcopy(entry[0]), entry[1]

    def _commit(self, writes: Sequence[PendingWrite]) -> None:
        for write in writes:
            self._check_write(write.collection)
        with self._lock:
            for write in writes:
                entry = self._bucket(write.collection).get(write.doc_id)
                current_revision = entry[1] if entry else None
                if write.was_read and current_revision != write.expected_revision:
                    raise TransactionConflict(f"{write.collection}/{write.doc_id} changed during transaction")
            for write in writes:
                self._bucket(write.collection)[write.doc_id] = (copy.deepcopy(write.data), _new_revision())


class SupabaseDocumentStore(DocumentStore):
    """Supabase-backed implementation.

    Every collection is a table of ``id``, ``created_at``, ``revision`` and a
    ``data`` jsonb column holding the document itself.
    """

    def __init__(self, client: SupabaseClient, session: Optional[SupabaseSession] = None) -> None:
        self._client = client
        self._session = session

    @property
    def _token(self) -> str:
        if self._session is not None:
            return self._session.access_token
        return self._client.anon_key

    @staticmethod
    def _row_to_document(row: Mapping[str, Any]) -> Document:
        document = dict(row.get("data") or {})
        document["id"] = str(row.get("id"))
        if not document.get("createdAt") and row.get("created_at"):
            document["createdAt"] = row["created_at"]
        return document

    @staticmethod
    def _document_row(doc_id: str, data: Mapping[str, Any], revision: str) -> Dict[str, Any]:
        payload = {**data, "id": doc_id}
        row: Dict[str, Any] = {"id": doc_id, "data": payload, "revision": revision}
        if payload.get("createdAt"):
            row["created_at"] = payload["createdAt"]
        return row

    def query(
        self,
        collection: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Fetched[List[Document]]:
        params = {f"data->>{key}": f"eq.{value}" for key, value in (filters or {}).items()}
        try:
            rows = self._client.select(
                collection,
                access_token=self._token,
                filters=params,
                order="created_at.desc",
            )
        except (SupabaseError, requests.RequestException) as exc:
            _LOGGER.warning("Query on %s unavailable: %s", collection, exc)
            return Fetched.unavailable([])
        return Fetched([self._row_to_document(row) for row in rows])

    def _read(self, collection: str, doc_id: str) -> Optional[Tuple[Document, str]]:
        rows = self._client.select(
            collection,
            access_token=self._token,
            filters={"id": f"eq.{doc_id}"},
            limit=1,
        )
        if not rows:
            return None
        row = rows[0]
        return self._row_to_document(row), str(row.get("revision") or "")

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> Document:
        payload = dict(data)
        if merge:
            payload = {**(self.get(collection, doc_id) or {}), **payload}
        row = self._document_row(doc_id, payload, _new_revision())
        rows = self._client.insert(
            collection,
            [row],
            access_token=self._token,
            prefer_resolution="merge-duplicates",
            on_conflict="id",
        )
        return self._row_to_document(rows[0]) if rows else row["data"]

    def delete(self, collection: str, doc_id: str) -> None:
        self._client.delete(collection, access_token=self._token, filters={"id": f"eq.{doc_id}"})

    def _commit(self, writes: Sequence[PendingWrite]) -> None:
        """Apply every write in one database transaction via ``COMMIT_FUNCTION``.

        The function checks each read revision and rolls back all writes on
        the first mismatch, reported as SQLSTATE ``40001``.
        """

        if not writes:
            return
        payload = []
        for write in writes:
            row = self._document_row(write.doc_id, write.data, _new_revision())
            payload.append(
                {
                    "collection": write.collection,
                    "id": write.doc_id,
                    "data": row["data"],
                    "revision": row["revision"],
                    "created_at": row.get("created_at"),
                    "checked": write.was_read,
                    "expected_revision": write.expected_revision,
                }
            )
        try:
            self._client.rpc(COMMIT_FUNCTION, {"writes": payload}, access_token=self._token)
        except SupabaseError as exc:
            if exc.code == REVISION_CONFLICT_CODE:
                raise TransactionConflict(str(exc)) from exc
            raise


__all__ = [
    "BOOKINGS",
    "COMMIT_FUNCTION",
    "DEFAULT_TRANSACTION_ATTEMPTS",
    "Document",
    "DocumentStore",
    "EVENTS",
    "Fault",
    "Fetched",
    "InMemoryDocumentStore",
    "PendingWrite",
    "REVISION_CONFLICT_CODE",
    "SupabaseDocumentStore",
    "Transaction",
    "USERS",
    "newest_first",
]
