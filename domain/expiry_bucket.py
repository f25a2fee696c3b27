"""
Domain: Expiry buckets for browsing listings.

Listings are grouped by how soon they expire, relative to `today`, which is
the evaluation moment truncated to midnight in its own timezone:

  - EXPIRING_TODAY: expiry falls on today's calendar date
  - WITHIN_WEEK:    expiry ∈ ( today,      today + 7d  ]
  - WITHIN_MONTH:   expiry ∈ ( today + 7d, today + 30d ]
  - REMAINING:      expiry >  today + 30d
  - EXPIRED:        expiry <  today

A listing on today's date belongs to EXPIRING_TODAY only, so every listing
with a readable expiry lands in exactly one bucket. Listings without a
readable expiry land in none.

All evaluation moments are passed explicitly; no implicit 'now' is used.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from .coupon import CouponListing
from .time import require_aware_timestamp, start_of_day

ALL_SECTIONS = "All"


class ExpiryBucket(str, Enum):
    EXPIRING_TODAY = "EXPIRING_TODAY"
    WITHIN_WEEK = "WITHIN_WEEK"
    WITHIN_MONTH = "WITHIN_MONTH"
    REMAINING = "REMAINING"
    EXPIRED = "EXPIRED"

    @property
    def title(self) -> str:
        return _TITLES[self]

    @staticmethod
    def from_title(title: str) -> "ExpiryBucket":
        for bucket, bucket_title in _TITLES.items():
            if bucket_title == title:
                return bucket
        raise ValueError(f"Unknown section: {title!r}")

    @staticmethod
    def for_expiry(expiry: Optional[datetime], now: datetime) -> Optional["ExpiryBucket"]:
        """
        Resolve the bucket for an expiry timestamp evaluated at `now`.

        Returns None if the expiry is absent.
        """

        require_aware_timestamp("now", now)
        if expiry is None:
            return None

        today = start_of_day(now)
        local_expiry = expiry.astimezone(today.tzinfo)

        if local_expiry.date() == today.date():
            return ExpiryBucket.EXPIRING_TODAY
        if local_expiry < today:
            return ExpiryBucket.EXPIRED
        if local_expiry <= today + timedelta(days=7):
            return ExpiryBucket.WITHIN_WEEK
        if local_expiry <= today + timedelta(days=30):
            return ExpiryBucket.WITHIN_MONTH
        return ExpiryBucket.REMAINING


_TITLES: Dict[ExpiryBucket, str] = {
    ExpiryBucket.EXPIRING_TODAY: "Expiring Today",
    ExpiryBucket.WITHIN_WEEK: "Expiring Within a Week",
    ExpiryBucket.WITHIN_MONTH: "Expiring Within a Month",
    ExpiryBucket.REMAINING: "Remaining Coupons",
    ExpiryBucket.EXPIRED: "Expired Coupons",
}


@dataclass(frozen=True, slots=True)
class ListingSection:
    bucket: ExpiryBucket
    listings: List[CouponListing]

    @property
    def title(self) -> str:
        return self.bucket.title


def categorize_listings(
    listings: Iterable[CouponListing],
    now: datetime,
) -> Dict[ExpiryBucket, List[CouponListing]]:
    """
    Partition listings into expiry buckets, preserving input order within each.

    Every bucket is present in the result, possibly empty.
    """

    buckets: Dict[ExpiryBucket, List[CouponListing]] = {bucket: [] for bucket in ExpiryBucket}
    for listing in listings:
        bucket = ExpiryBucket.for_expiry(listing.expiry_date, now)
        if bucket is not None:
            buckets[bucket].append(listing)
    return buckets


def build_sections(
    listings: Sequence[CouponListing],
    now: datetime,
    *,
    search: str = "",
    section: str = ALL_SECTIONS,
) -> List[ListingSection]:
    """
    Build the browse sections shown to a buyer.

    - `search` keeps listings whose name contains it (case-insensitive).
    - `section` == "All" returns the non-empty sections in bucket order;
      a section title returns just that section, even if empty.
    """

    if search:
        needle = search.lower()
        listings = [l for l in listings if l.name and needle in l.name.lower()]

    buckets = categorize_listings(listings, now)

    if section != ALL_SECTIONS:
        bucket = ExpiryBucket.from_title(section)
        return [ListingSection(bucket=bucket, listings=buckets[bucket])]

    return [
        ListingSection(bucket=bucket, listings=items)
        for bucket, items in buckets.items()
        if items
    ]


def is_expiring_soon(listing: CouponListing, now: datetime) -> bool:
    """True if the listing expires in under 7 days and has not yet expired."""

    require_aware_timestamp("now", now)
    if listing.expiry_date is None:
        return False
    return now < listing.expiry_date and listing.expiry_date - now < timedelta(days=7)
