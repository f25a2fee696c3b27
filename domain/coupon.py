"""
Domain: Coupon listings.

A listing is a coupon offered for sale by its owner. It is created by the
seller, read by prospective buyers and deleted exactly once, when a purchase
commits.

Listings written by older clients may lack fields or carry malformed values;
this module keeps such listings readable and leaves the defaulting policy to
the purchase flow.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
import re
from typing import Any, Optional

from .time import require_aware_timestamp

SELL_TYPE = "sell"

# Mobile clients prefix category labels with an emoji, e.g. "🍕 Food".
_LABEL_PREFIX = re.compile(r"^[\W_]+")


class CouponCategory(str, Enum):
    FOOD = "Food"
    CLOTHES = "Clothes"
    TRAVEL = "Travel"
    ELECTRONICS = "Electronics"
    ONLINE_GAMING = "Online Gaming"
    BEAUTY = "Beauty"
    HEALTH_AND_WELLNESS = "Health & Wellness"
    OTHERS = "Others"


def normalize_category(label: Optional[str]) -> str:
    """Strip surrounding whitespace and any leading emoji or symbol prefix."""

    if not label:
        return ""
    return _LABEL_PREFIX.sub("", label.strip()).strip()


def parse_coupon_value(value: Any) -> Optional[Decimal]:
    """
    Parse a stored coupon value.

    Returns None if the value is missing, non-numeric, or not finite.
    """

    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


@dataclass(frozen=True, slots=True)
class CouponListing:
    """
    Coupon listing read from the `coupons` collection.

    `expiry_date` is None when the stored timestamp is absent or malformed.
    """

    coupon_id: str
    user_id: Optional[str]
    user_email: Optional[str]
    name: Optional[str]
    value: Optional[Decimal]
    details: Optional[str]
    category: Optional[str]
    expiry_date: Optional[datetime]
    type: str = SELL_TYPE
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.coupon_id:
            raise ValueError("coupon_id must be non-empty")
        if self.expiry_date is not None:
            require_aware_timestamp("expiry_date", self.expiry_date)
        if self.created_at is not None:
            require_aware_timestamp("created_at", self.created_at)

    def is_expired(self, as_of: datetime) -> bool:
        """
        A listing is expired unless its expiry is strictly after `as_of`.

        Listings without a readable expiry cannot be shown to be valid and
        count as expired.
        """

        require_aware_timestamp("as_of", as_of)
        if self.expiry_date is None:
            return True
        return self.expiry_date <= as_of
