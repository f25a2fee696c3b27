"""
Document store (persistence primitives).

Collections are Postgres tables shaped `(id, data jsonb, version)`. This
module offers the three primitives the services rely on:

- filtered reads over a named collection (`query`, `get`)
- plain create/overwrite writes (`set`, `add`)
- an atomic read-modify-write unit (`run_transaction`)

Atomic units are optimistic. Every document read inside the unit is recorded
with the version that was seen (or as absent), writes are buffered, and the
whole batch is committed by a single call to the `commit_document_writes`
Postgres function. That function locks each recorded document, rejects the
batch with SQLSTATE 40001 if any version moved, and otherwise applies all
writes in one database transaction. A rejected batch is re-run from scratch
up to `max_attempts` times.

This module contains no business rules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar
from uuid import uuid4

import httpx
from postgrest.exceptions import APIError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Postgres serialization_failure; raised by commit_document_writes on a version mismatch.
_CONFLICT_SQLSTATE = "40001"

_OPERATORS = ("==", "!=")


class TransactionConflictError(RuntimeError):
    """Raised when an atomic unit keeps losing write conflicts."""


@dataclass(frozen=True, slots=True)
class Document:
    collection: str
    doc_id: str
    data: Mapping[str, Any]
    version: int


@dataclass(frozen=True, slots=True)
class FieldFilter:
    """Equality / inequality filter on a top-level document field."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")

    def matches(self, data: Mapping[str, Any]) -> bool:
        """
        Evaluate the filter against document data.

        As in the database, a document missing the field never matches,
        whichever operator is used.
        """

        if self.field not in data or data[self.field] is None:
            return False
        actual = str(data[self.field])
        expected = str(self.value)
        return actual == expected if self.op == "==" else actual != expected


@dataclass(frozen=True, slots=True)
class Precondition:
    """Version a document had when read; None means it did not exist."""

    collection: str
    doc_id: str
    version: Optional[int]


@dataclass(frozen=True, slots=True)
class Write:
    collection: str
    doc_id: str
    op: str  # set, delete
    data: Optional[Mapping[str, Any]] = None
    merge: bool = False


class Transaction(Protocol):
    def get(self, collection: str, doc_id: str) -> Optional[Document]: ...

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> None: ...

    def delete(self, collection: str, doc_id: str) -> None: ...


class DocumentStore(Protocol):
    def query(self, collection: str, filters: Sequence[FieldFilter] = ()) -> List[Document]: ...

    def get(self, collection: str, doc_id: str) -> Optional[Document]: ...

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> None: ...

    def add(self, collection: str, data: Mapping[str, Any]) -> str: ...

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T: ...


class BufferedTransaction:
    """
    Read-set / write-set recorder for one attempt of an atomic unit.

    All reads must happen before the first write, so that every decision the
    unit makes is covered by a recorded precondition.
    """

    def __init__(self, read: Callable[[str, str], Optional[Document]]) -> None:
        self._read = read
        self._preconditions: Dict[Tuple[str, str], Precondition] = {}
        self._writes: List[Write] = []

    @property
    def preconditions(self) -> List[Precondition]:
        return list(self._preconditions.values())

    @property
    def writes(self) -> List[Write]:
        return list(self._writes)

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        if self._writes:
            raise RuntimeError("Transaction reads must be executed before all writes")

        document = self._read(collection, doc_id)
        key = (collection, doc_id)
        if key not in self._preconditions:
            self._preconditions[key] = Precondition(
                collection=collection,
                doc_id=doc_id,
                version=document.version if document is not None else None,
            )
        return document

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> None:
        self._writes.append(Write(collection=collection, doc_id=doc_id, op="set", data=dict(data), merge=merge))

    def delete(self, collection: str, doc_id: str) -> None:
        self._writes.append(Write(collection=collection, doc_id=doc_id, op="delete"))


class OptimisticDocumentStore:
    """
    Shared retry loop and plain-write helpers.

    Subclasses provide `query`, `_read_document` and `_commit`; `_commit` must
    apply every write or none, and raise TransactionConflictError when a
    precondition no longer holds.
    """

    def __init__(self, max_attempts: int = 5) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts

    def query(self, collection: str, filters: Sequence[FieldFilter] = ()) -> List[Document]:
        raise NotImplementedError

    def _read_document(self, collection: str, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    def _commit(self, preconditions: Sequence[Precondition], writes: Sequence[Write]) -> None:
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return self._read_document(collection, doc_id)

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False) -> None:
        self._commit([], [Write(collection=collection, doc_id=doc_id, op="set", data=dict(data), merge=merge)])

    def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = uuid4().hex
        self.set(collection, doc_id, data)
        return doc_id

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T:
        """
        Run `fn` as one all-or-nothing unit.

        Exceptions raised by `fn` abort the unit without committing anything
        and propagate unchanged. Conflicts re-run `fn` against fresh reads.
        """

        for attempt in range(1, self.max_attempts + 1):
            tx = BufferedTransaction(self._read_document)
            result = fn(tx)
            writes = tx.writes
            if not writes:
                return result
            try:
                self._commit(tx.preconditions, writes)
            except TransactionConflictError:
                logger.warning(
                    "Transaction conflict on attempt %d/%d", attempt, self.max_attempts
                )
                continue
            return result

        raise TransactionConflictError(
            f"Transaction aborted after {self.max_attempts} conflicting attempts"
        )


def _row_to_document(collection: str, row: Mapping[str, Any]) -> Document:
    return Document(
        collection=collection,
        doc_id=str(row["id"]),
        data=dict(row.get("data") or {}),
        version=int(row.get("version") or 0),
    )


class SupabaseDocumentStore(OptimisticDocumentStore):
    """Document store backed by Supabase tables and the commit RPC."""

    def __init__(self, client: Any, *, commit_rpc: str = "commit_document_writes", max_attempts: int = 5) -> None:
        super().__init__(max_attempts=max_attempts)
        self._client = client
        self._commit_rpc = commit_rpc

    @staticmethod
    def _execute(request: Any, action: str) -> Any:
        """
        Execute a PostgREST request.

        Raises TransactionConflictError for SQLSTATE 40001 and RuntimeError for
        any other API or transport failure.
        """

        try:
            return request.execute()
        except APIError as e:
            if str(getattr(e, "code", "")) == _CONFLICT_SQLSTATE:
                raise TransactionConflictError(e.message or "Document version changed") from e
            raise RuntimeError(f"Failed to {action}: {e.message or e}") from e
        except httpx.HTTPError as e:
            raise RuntimeError(f"Failed to {action}: {e}") from e

    def query(self, collection: str, filters: Sequence[FieldFilter] = ()) -> List[Document]:
        request = self._client.table(collection).select("id, data, version")
        for f in filters:
            column = f"data->>{f.field}"
            if f.op == "==":
                request = request.eq(column, str(f.value))
            else:
                request = request.neq(column, str(f.value))

        response = self._execute(request, f"query {collection}")
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to query {collection}: {error}")

        rows = getattr(response, "data", None) or []
        return [_row_to_document(collection, row) for row in rows]

    def _read_document(self, collection: str, doc_id: str) -> Optional[Document]:
        request = (
            self._client.table(collection)
            .select("id, data, version")
            .eq("id", doc_id)
            .limit(1)
        )
        response = self._execute(request, f"read {collection}/{doc_id}")
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to read {collection}/{doc_id}: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_document(collection, rows[0])

    def _commit(self, preconditions: Sequence[Precondition], writes: Sequence[Write]) -> None:
        payload = {
            "p_preconditions": [
                {"collection": p.collection, "id": p.doc_id, "version": p.version}
                for p in preconditions
            ],
            "p_writes": [
                {
                    "collection": w.collection,
                    "id": w.doc_id,
                    "op": w.op,
                    "data": dict(w.data) if w.data is not None else None,
                    "merge": w.merge,
                }
                for w in writes
            ],
        }

        response = self._execute(self._client.rpc(self._commit_rpc, payload), "commit writes")

        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to commit writes: {error}")


__all__ = [
    "BufferedTransaction",
    "Document",
    "DocumentStore",
    "FieldFilter",
    "OptimisticDocumentStore",
    "Precondition",
    "SupabaseDocumentStore",
    "Transaction",
    "TransactionConflictError",
    "Write",
]
