"""
Transaction repository (persistence).

This module provides *only* persistence operations for the TransactionRecord
domain entity. Records are keyed by their derived idempotency key and written
with merge semantics, so a repeated write for the same (buyer, coupon) pair
overwrites one document instead of adding another.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from domain.coupon import parse_coupon_value
from domain.time import parse_timestamp, to_iso_utc
from domain.transaction import BUY_TYPE, TransactionRecord
from repositories.document_store import DocumentStore, FieldFilter, Transaction
from repositories.settings import get_settings


def _transactions_table() -> str:
    return get_settings().transactions_table


def record_to_document(record: TransactionRecord) -> Dict[str, Any]:
    return {
        "couponId": record.coupon_id,
        "couponName": record.coupon_name,
        "couponValue": float(record.coupon_value),
        "buyerId": record.buyer_id,
        "buyerEmail": record.buyer_email,
        "sellerId": record.seller_id,
        "sellerEmail": record.seller_email,
        "type": record.type,
        "createdAt": to_iso_utc(record.created_at, name="created_at"),
    }


def document_to_record(data: Mapping[str, Any]) -> TransactionRecord:
    """Convert a stored transaction document into a TransactionRecord."""

    buyer_id = str(data["buyerId"])
    coupon_id = str(data["couponId"])
    created_at = parse_timestamp(data.get("createdAt")) or datetime.fromtimestamp(0, tz=timezone.utc)

    return TransactionRecord(
        transaction_id=f"{buyer_id}_{coupon_id}",
        coupon_id=coupon_id,
        coupon_name=str(data.get("couponName") or ""),
        coupon_value=parse_coupon_value(data.get("couponValue")) or Decimal("0"),
        buyer_id=buyer_id,
        buyer_email=str(data.get("buyerEmail") or ""),
        seller_id=str(data.get("sellerId") or ""),
        seller_email=str(data.get("sellerEmail") or ""),
        created_at=created_at,
        type=str(data.get("type") or BUY_TYPE),
    )


def write_transaction_in(tx: Transaction, record: TransactionRecord) -> None:
    """Create-or-overwrite the record inside an atomic unit."""

    tx.set(_transactions_table(), record.transaction_id, record_to_document(record), merge=True)


def get_transaction(store: DocumentStore, transaction_id: str) -> Optional[TransactionRecord]:
    document = store.get(_transactions_table(), transaction_id)
    if document is None:
        return None
    return document_to_record(document.data)


def list_purchases_by_buyer(store: DocumentStore, buyer_id: str) -> List[TransactionRecord]:
    """Purchase records for a buyer (type 'buy'), newest first."""

    documents = store.query(
        _transactions_table(),
        [
            FieldFilter("buyerId", "==", buyer_id),
            FieldFilter("type", "==", BUY_TYPE),
        ],
    )
    records = [document_to_record(d.data) for d in documents]
    return sorted(records, key=lambda r: r.created_at, reverse=True)


__all__ = [
    "record_to_document",
    "document_to_record",
    "write_transaction_in",
    "get_transaction",
    "list_purchases_by_buyer",
]
