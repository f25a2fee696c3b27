"""
Coupon repository (persistence).

Maps between stored listing documents (camelCase fields shared with the
mobile client) and the CouponListing domain entity. It enforces no business
rules; eligibility and expiry checks live in the services.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from domain.coupon import SELL_TYPE, CouponListing, parse_coupon_value
from domain.time import parse_timestamp, to_iso_utc
from repositories.document_store import Document, DocumentStore, FieldFilter, Transaction
from repositories.settings import get_settings


def _coupons_table() -> str:
    return get_settings().coupons_table


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def document_to_listing(doc_id: str, data: Mapping[str, Any]) -> CouponListing:
    """Convert stored listing data into a CouponListing; malformed fields become None."""

    return CouponListing(
        coupon_id=doc_id,
        user_id=_optional_str(data.get("userId")),
        user_email=_optional_str(data.get("userEmail")),
        name=_optional_str(data.get("name")),
        value=parse_coupon_value(data.get("value")),
        details=_optional_str(data.get("details")),
        category=_optional_str(data.get("category")),
        expiry_date=parse_timestamp(data.get("expiryDate")),
        type=str(data.get("type") or ""),
        created_at=parse_timestamp(data.get("createdAt")),
    )


def listing_to_document(listing: CouponListing) -> Dict[str, Any]:
    """Serialize a listing to the stored document shape (id excluded)."""

    return {
        "name": listing.name,
        "value": _number(listing.value),
        "details": listing.details,
        "expiryDate": to_iso_utc(listing.expiry_date, name="expiry_date") if listing.expiry_date else None,
        "category": listing.category,
        "type": listing.type,
        "userId": listing.user_id,
        "userEmail": listing.user_email,
        "createdAt": to_iso_utc(listing.created_at, name="created_at") if listing.created_at else None,
    }


def _number(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _to_listing(document: Document) -> CouponListing:
    return document_to_listing(document.doc_id, document.data)


def insert_listing(store: DocumentStore, listing: CouponListing) -> None:
    """Create or overwrite the listing document under its own id."""

    store.set(_coupons_table(), listing.coupon_id, listing_to_document(listing))


def list_listings_excluding_owner(store: DocumentStore, owner_id: str) -> List[CouponListing]:
    """
    Listings for sale whose owner is not `owner_id`.

    Returned in storage order; callers sort.
    """

    documents = store.query(
        _coupons_table(),
        [
            FieldFilter("userId", "!=", owner_id),
            FieldFilter("type", "==", SELL_TYPE),
        ],
    )
    return [_to_listing(d) for d in documents]


def list_other_users_listings(store: DocumentStore, owner_id: str) -> List[CouponListing]:
    """Every listing not owned by `owner_id`, regardless of type."""

    documents = store.query(_coupons_table(), [FieldFilter("userId", "!=", owner_id)])
    return [_to_listing(d) for d in documents]


def list_listings_by_owner(store: DocumentStore, owner_id: str) -> List[CouponListing]:
    documents = store.query(
        _coupons_table(),
        [
            FieldFilter("userId", "==", owner_id),
            FieldFilter("type", "==", SELL_TYPE),
        ],
    )
    return [_to_listing(d) for d in documents]


def read_listing_in(tx: Transaction, coupon_id: str) -> Optional[CouponListing]:
    """Read a listing inside an atomic unit."""

    document = tx.get(_coupons_table(), coupon_id)
    if document is None:
        return None
    return _to_listing(document)


def delete_listing_in(tx: Transaction, coupon_id: str) -> None:
    tx.delete(_coupons_table(), coupon_id)


__all__ = [
    "document_to_listing",
    "listing_to_document",
    "insert_listing",
    "list_listings_excluding_owner",
    "list_other_users_listings",
    "list_listings_by_owner",
    "read_listing_in",
    "delete_listing_in",
]
