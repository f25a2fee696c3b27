"""
Purchase service for transferring a coupon from its seller to a buyer.

Handles:
- Authentication check on the buyer identity
- Validation of the listing *inside* the atomic unit (existence, expiry)
- Atomic hand-off: write the transaction record and delete the listing
  together, or not at all
- Mapping of every failure onto the purchase error taxonomy

Two concurrent purchases of the same listing cannot both commit. Both read
the listing at the same version, and the commit function accepts only the
first batch. The loser is re-run by the store, finds the listing gone and
fails with CouponNotFoundError. If the store runs out of retries, the loser
gets StoreFailureError. This service never retries a purchase itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from domain.errors import (
    CouponExpiredError,
    CouponNotFoundError,
    PurchaseError,
    StoreFailureError,
    UnauthenticatedError,
)
from domain.identity import Identity
from domain.time import utc_now
from domain.transaction import PurchaseDefaults, TransactionRecord
from repositories.coupon_repository import delete_listing_in, read_listing_in
from repositories.document_store import DocumentStore, Transaction, TransactionConflictError
from repositories.transaction_repository import write_transaction_in

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True, slots=True)
class PurchaseRequest:
    """
    Request to purchase a single listing.
    """
    buyer: Optional[Identity]
    coupon_id: str


@dataclass(frozen=True, slots=True)
class PurchaseResult:
    """
    Result of a purchase attempt.

    success: True if the transfer committed
    record: The committed transaction record (None on failure)
    error_code: Stable failure code (None on success)
    message: Human-readable outcome, suitable for showing to the user
    """
    success: bool
    record: Optional[TransactionRecord]
    error_code: Optional[str]
    message: str


def purchase_coupon(
    store: DocumentStore,
    buyer: Optional[Identity],
    coupon_id: str,
    *,
    defaults: PurchaseDefaults = PurchaseDefaults(),
    clock: Clock = utc_now,
) -> TransactionRecord:
    """
    Atomically convert a "sell" listing into a "buy" transaction record.

    Process (one atomic unit):
    1. Read the listing
    2. Fail with CouponNotFoundError if it no longer exists
    3. Fail with CouponExpiredError unless its expiry is strictly after now
    4. Write the record keyed `buyerId_couponId` (merge)
    5. Delete the listing

    Args:
        store: Document store offering atomic units
        buyer: Signed-in identity, or None
        coupon_id: Listing to purchase
        defaults: Placeholders for fields the listing lacks
        clock: Source of "now"; read inside the unit

    Returns:
        The committed TransactionRecord

    Raises:
        UnauthenticatedError, CouponNotFoundError, CouponExpiredError,
        StoreFailureError
    """
    if buyer is None:
        raise UnauthenticatedError()
    if not coupon_id:
        raise CouponNotFoundError()

    def transfer(tx: Transaction) -> TransactionRecord:
        listing = read_listing_in(tx, coupon_id)
        if listing is None:
            raise CouponNotFoundError()

        if listing.is_expired(clock()):
            raise CouponExpiredError()

        record = TransactionRecord.for_purchase(listing, buyer, created_at=clock(), defaults=defaults)
        write_transaction_in(tx, record)
        delete_listing_in(tx, coupon_id)
        return record

    try:
        record = store.run_transaction(transfer)
    except PurchaseError:
        raise
    except TransactionConflictError as e:
        logger.warning("Purchase of coupon %s by %s lost a write conflict: %s", coupon_id, buyer.uid, e)
        raise StoreFailureError() from e
    except (RuntimeError, OSError) as e:
        logger.warning("Purchase of coupon %s by %s failed in the store: %s", coupon_id, buyer.uid, e)
        raise StoreFailureError() from e

    logger.info(
        "Coupon %s sold by %s to %s (transaction %s)",
        coupon_id, record.seller_id, record.buyer_id, record.transaction_id,
    )
    return record


def execute_purchase(
    store: DocumentStore,
    request: PurchaseRequest,
    *,
    defaults: PurchaseDefaults = PurchaseDefaults(),
    clock: Clock = utc_now,
) -> PurchaseResult:
    """
    Execute a purchase and report the outcome as a single result.

    Failures never raise; they are returned with `success=False` and a
    message. Callers should only drop the listing from their local state
    when `success` is True.

    Example:
        result = execute_purchase(store, PurchaseRequest(buyer=identity, coupon_id="abc"))
        if result.success:
            print(result.message)
        else:
            print(f"Purchase failed: {result.message}")
    """
    try:
        record = purchase_coupon(
            store, request.buyer, request.coupon_id, defaults=defaults, clock=clock
        )
    except PurchaseError as e:
        logger.warning("Purchase of coupon %s rejected: %s (%s)", request.coupon_id, e.code, e.message)
        return PurchaseResult(success=False, record=None, error_code=e.code, message=e.message)

    return PurchaseResult(
        success=True,
        record=record,
        error_code=None,
        message=f"You bought {record.coupon_name} for {record.coupon_value}",
    )


__all__ = [
    "PurchaseRequest",
    "PurchaseResult",
    "purchase_coupon",
    "execute_purchase",
]
