"""
Tests for `repositories/document_store.py`.

Covers:
- Transactions record read versions (or absence) as preconditions.
- Reads after writes are rejected.
- Units that raise commit nothing; units without writes skip the commit.
- The Supabase store builds the expected PostgREST queries and commit payload,
  and maps SQLSTATE 40001 to a retry.
- API and transport failures surface as RuntimeError, and as StoreFailureError
  from a purchase.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from domain.errors import StoreFailureError
from domain.identity import Identity
from repositories.document_store import (
    BufferedTransaction,
    Document,
    FieldFilter,
    SupabaseDocumentStore,
    TransactionConflictError,
)
from services.purchase_service import purchase_coupon
from tests.fakes import AlwaysConflictingStore


def test_field_filter_never_matches_missing_field() -> None:
    assert FieldFilter("userId", "!=", "u1").matches({"type": "sell"}) is False
    assert FieldFilter("userId", "==", "u1").matches({"userId": None}) is False
    assert FieldFilter("userId", "!=", "u1").matches({"userId": "u2"}) is True
    assert FieldFilter("type", "==", "sell").matches({"type": "sell"}) is True


def test_field_filter_rejects_unknown_operator() -> None:
    with pytest.raises(ValueError):
        FieldFilter("value", ">", 1)


def test_buffered_transaction_records_versions_and_absence() -> None:
    docs = {"c1": Document(collection="coupons", doc_id="c1", data={}, version=4)}
    tx = BufferedTransaction(lambda collection, doc_id: docs.get(doc_id))

    tx.get("coupons", "c1")
    tx.get("coupons", "missing")
    tx.get("coupons", "c1")

    assert [(p.doc_id, p.version) for p in tx.preconditions] == [("c1", 4), ("missing", None)]


def test_buffered_transaction_rejects_reads_after_writes() -> None:
    tx = BufferedTransaction(lambda collection, doc_id: None)
    tx.delete("coupons", "c1")

    with pytest.raises(RuntimeError):
        tx.get("coupons", "c2")


def test_failed_unit_commits_nothing(store) -> None:
    store.seed("coupons", "c1", {"type": "sell"})

    def unit(tx):
        tx.delete("coupons", "c1")
        raise LookupError("abort")

    with pytest.raises(LookupError):
        store.run_transaction(unit)

    assert store.ids("coupons") == ["c1"]
    assert store.commits == 0


def test_read_only_unit_skips_commit(store) -> None:
    store.seed("coupons", "c1", {"type": "sell"})

    result = store.run_transaction(lambda tx: tx.get("coupons", "c1").data["type"])

    assert result == "sell"
    assert store.commits == 0


def test_plain_set_merges_and_bumps_version(store) -> None:
    store.set("users", "u1", {"name": "Asha", "phone": "1"})
    store.set("users", "u1", {"phone": "2"}, merge=True)

    doc = store.get("users", "u1")
    assert doc.data == {"name": "Asha", "phone": "2"}
    assert doc.version == 2


def test_retry_budget_is_bounded() -> None:
    store = AlwaysConflictingStore(max_attempts=2)
    store.seed("coupons", "c1", {"type": "sell"})

    with pytest.raises(TransactionConflictError):
        store.run_transaction(lambda tx: (tx.get("coupons", "c1"), tx.delete("coupons", "c1")))

    assert store.conflicts == 2


def _response(data):
    response = MagicMock()
    response.data = data
    response.error = None
    return response


def test_supabase_query_uses_json_field_filters() -> None:
    client = MagicMock()
    request = client.table.return_value.select.return_value
    request.neq.return_value = request
    request.eq.return_value = request
    request.execute.return_value = _response([{"id": "c1", "data": {"type": "sell"}, "version": 3}])

    store = SupabaseDocumentStore(client)
    docs = store.query("coupons", [FieldFilter("userId", "!=", "u1"), FieldFilter("type", "==", "sell")])

    client.table.assert_called_with("coupons")
    request.neq.assert_called_once_with("data->>userId", "u1")
    request.eq.assert_called_once_with("data->>type", "sell")
    assert docs == [Document(collection="coupons", doc_id="c1", data={"type": "sell"}, version=3)]


def test_supabase_get_returns_none_when_missing() -> None:
    client = MagicMock()
    chain = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    chain.execute.return_value = _response([])

    assert SupabaseDocumentStore(client).get("coupons", "nope") is None


def test_supabase_transaction_sends_preconditions_and_writes() -> None:
    client = MagicMock()
    read = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    read.execute.return_value = _response([{"id": "c1", "data": {"type": "sell"}, "version": 7}])
    client.rpc.return_value.execute.return_value = _response({"success": True})

    store = SupabaseDocumentStore(client, commit_rpc="commit_document_writes")

    def unit(tx):
        tx.get("coupons", "c1")
        tx.set("transactions", "b_c1", {"type": "buy"}, merge=True)
        tx.delete("coupons", "c1")

    store.run_transaction(unit)

    client.rpc.assert_called_once_with(
        "commit_document_writes",
        {
            "p_preconditions": [{"collection": "coupons", "id": "c1", "version": 7}],
            "p_writes": [
                {"collection": "transactions", "id": "b_c1", "op": "set", "data": {"type": "buy"}, "merge": True},
                {"collection": "coupons", "id": "c1", "op": "delete", "data": None, "merge": False},
            ],
        },
    )


def test_supabase_conflict_is_retried_then_succeeds() -> None:
    client = MagicMock()
    read = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    read.execute.return_value = _response([{"id": "c1", "data": {}, "version": 1}])
    conflict = APIError({"code": "40001", "message": "document changed", "details": None, "hint": None})
    client.rpc.return_value.execute.side_effect = [conflict, _response({"success": True})]

    store = SupabaseDocumentStore(client, max_attempts=3)
    store.run_transaction(lambda tx: (tx.get("coupons", "c1"), tx.delete("coupons", "c1")))

    assert client.rpc.return_value.execute.call_count == 2


def test_supabase_other_api_errors_are_runtime_errors() -> None:
    client = MagicMock()
    failure = APIError({"code": "42501", "message": "permission denied", "details": None, "hint": None})
    client.rpc.return_value.execute.side_effect = failure

    with pytest.raises(RuntimeError) as excinfo:
        SupabaseDocumentStore(client).set("users", "u1", {"name": "x"})

    assert not isinstance(excinfo.value, TransactionConflictError)
    assert "permission denied" in str(excinfo.value)


@pytest.mark.parametrize(
    "failure",
    [
        APIError({"code": "PGRST000", "message": "could not connect to database", "details": None, "hint": None}),
        httpx.ConnectError("connection refused"),
    ],
)
def test_supabase_read_failures_are_runtime_errors(failure) -> None:
    client = MagicMock()
    read = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    read.execute.side_effect = failure

    with pytest.raises(RuntimeError) as excinfo:
        SupabaseDocumentStore(client).get("coupons", "c1")

    assert not isinstance(excinfo.value, TransactionConflictError)


def test_supabase_transport_failure_on_commit_is_runtime_error() -> None:
    client = MagicMock()
    client.rpc.return_value.execute.side_effect = httpx.ReadTimeout("timed out")

    with pytest.raises(RuntimeError):
        SupabaseDocumentStore(client).set("users", "u1", {"name": "x"})


@pytest.mark.parametrize(
    "failure",
    [
        APIError({"code": "PGRST000", "message": "could not connect to database", "details": None, "hint": None}),
        httpx.ConnectError("connection refused"),
    ],
)
def test_purchase_against_unreachable_supabase_is_store_failure(failure) -> None:
    client = MagicMock()
    read = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    read.execute.side_effect = failure

    with pytest.raises(StoreFailureError):
        purchase_coupon(SupabaseDocumentStore(client), Identity(uid="buyer-1", email="b@example.com"), "c1")

    client.rpc.assert_not_called()
