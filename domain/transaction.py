"""
Domain: Transaction records (purchase ledger entries).

A transaction record links a buyer to the seller of a coupon that has been
bought. Its identifier is derived deterministically from
(buyer id, coupon id), so writing the same purchase twice overwrites a single
document instead of duplicating it.

Records are created at purchase time and never mutated or deleted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from .coupon import CouponListing
from .identity import Identity
from .time import require_aware_timestamp

BUY_TYPE = "buy"


def transaction_id_for(buyer_id: str, coupon_id: str) -> str:
    """Idempotency key for a purchase: `buyerId_couponId`."""

    if not buyer_id or not coupon_id:
        raise ValueError("buyer_id and coupon_id must be non-empty")
    return f"{buyer_id}_{coupon_id}"


@dataclass(frozen=True, slots=True)
class PurchaseDefaults:
    """
    Placeholder values used when a listing lacks the fields a record needs.
    """

    coupon_name: str = "Unnamed"
    coupon_value: Decimal = Decimal("500")
    seller_id: str = "unknown"
    seller_email: str = "unknown@email.com"


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    transaction_id: str
    coupon_id: str
    coupon_name: str
    coupon_value: Decimal
    buyer_id: str
    buyer_email: str
    seller_id: str
    seller_email: str
    created_at: datetime
    type: str = BUY_TYPE

    def __post_init__(self) -> None:
        require_aware_timestamp("created_at", self.created_at)
        if self.transaction_id != transaction_id_for(self.buyer_id, self.coupon_id):
            raise ValueError("transaction_id must be derived from (buyer_id, coupon_id)")

    @staticmethod
    def for_purchase(
        listing: CouponListing,
        buyer: Identity,
        created_at: datetime,
        defaults: PurchaseDefaults = PurchaseDefaults(),
    ) -> "TransactionRecord":
        """
        Build the ledger entry for `buyer` purchasing `listing`.

        Missing listing fields fall back to `defaults`.
        """

        name = listing.name if listing.name and listing.name.strip() else defaults.coupon_name
        value = listing.value if listing.value is not None else defaults.coupon_value

        return TransactionRecord(
            transaction_id=transaction_id_for(buyer.uid, listing.coupon_id),
            coupon_id=listing.coupon_id,
            coupon_name=name,
            coupon_value=value,
            buyer_id=buyer.uid,
            buyer_email=buyer.email,
            seller_id=listing.user_id or defaults.seller_id,
            seller_email=listing.user_email or defaults.seller_email,
            created_at=created_at,
        )
