"""
Listing service: discovery, browsing sections, selling and exchange search.

Discovery is a plain filtered, sorted read with no concurrency concerns.
Selling validates the seller's form and writes a new "sell" listing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import List, Optional
from uuid import uuid4

from domain.coupon import SELL_TYPE, CouponCategory, CouponListing, normalize_category, parse_coupon_value
from domain.errors import ListingValidationError, UnauthenticatedError
from domain.expiry_bucket import ALL_SECTIONS, ListingSection, build_sections
from domain.identity import Identity
from domain.time import utc_now
from repositories.coupon_repository import (
    insert_listing,
    list_listings_by_owner,
    list_listings_excluding_owner,
    list_other_users_listings,
)
from repositories.document_store import DocumentStore

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)

MIN_EXPIRY_YEAR = 2025
MAX_EXPIRY_YEAR = 2100


@dataclass(frozen=True, slots=True)
class NewListingForm:
    """Raw seller input; every field is required."""
    name: str
    value: str
    details: str
    category: str
    expiry_date: str  # DD-MM-YYYY


def _require_identity(identity: Optional[Identity], message: str) -> Identity:
    if identity is None:
        raise UnauthenticatedError(message)
    return identity


def _expiry_sort_key(listing: CouponListing) -> datetime:
    return listing.expiry_date or _EPOCH


def list_listings_for_buyer(store: DocumentStore, identity: Optional[Identity]) -> List[CouponListing]:
    """
    Listings a buyer can browse: type "sell", not owned by the buyer,
    sorted ascending by expiry (listings without an expiry first).
    """
    buyer = _require_identity(identity, "Please log in to view coupons.")
    listings = list_listings_excluding_owner(store, buyer.uid)
    return sorted(listings, key=_expiry_sort_key)


def browse_sections(
    store: DocumentStore,
    identity: Optional[Identity],
    *,
    now: Optional[datetime] = None,
    search: str = "",
    section: str = ALL_SECTIONS,
) -> List[ListingSection]:
    """Discovery grouped into expiry sections for the browse view."""

    listings = list_listings_for_buyer(store, identity)
    return build_sections(listings, now or utc_now(), search=search, section=section)


def parse_expiry_date(text: str, now: datetime, tz: tzinfo) -> datetime:
    """
    Parse a DD-MM-YYYY expiry into 23:59:59 of that day in `tz`.

    The year must be within [2025, 2100] and the result must be after `now`.
    """

    parts = text.strip().split("-")
    try:
        day, month, year = (int(p) for p in parts)
    except ValueError:
        raise ListingValidationError(
            "Please enter a valid future date in DD-MM-YYYY format (e.g., 11-04-2025)"
        ) from None

    if not MIN_EXPIRY_YEAR <= year <= MAX_EXPIRY_YEAR:
        raise ListingValidationError(f"Expiry year must be between {MIN_EXPIRY_YEAR} and {MAX_EXPIRY_YEAR}")

    try:
        expiry = datetime(year, month, day, 23, 59, 59, tzinfo=tz)
    except ValueError:
        raise ListingValidationError(
            "Please enter a valid future date in DD-MM-YYYY format (e.g., 11-04-2025)"
        ) from None

    if expiry <= now:
        raise ListingValidationError("Expiry date must be in the future")
    return expiry


def create_listing(
    store: DocumentStore,
    identity: Optional[Identity],
    form: NewListingForm,
    *,
    tz: tzinfo = timezone.utc,
    now: Optional[datetime] = None,
) -> CouponListing:
    """
    List a coupon for sale on behalf of `identity`.

    Raises:
        UnauthenticatedError: no signed-in identity
        ListingValidationError: missing fields, bad value, category or date
    """
    seller = _require_identity(identity, "Please log in to sell coupons.")
    now = now or utc_now()

    fields = (form.name, form.value, form.details, form.category, form.expiry_date)
    if any(not (f or "").strip() for f in fields):
        raise ListingValidationError("Please fill in all fields")

    value = parse_coupon_value(form.value)
    if value is None or value < Decimal("0"):
        raise ListingValidationError("Coupon value must be a non-negative number")

    try:
        category = CouponCategory(normalize_category(form.category))
    except ValueError:
        raise ListingValidationError(f"Unknown category: {form.category!r}") from None

    expiry = parse_expiry_date(form.expiry_date, now, tz)

    listing = CouponListing(
        coupon_id=uuid4().hex,
        user_id=seller.uid,
        user_email=seller.email,
        name=form.name.strip(),
        value=value,
        details=form.details.strip(),
        category=category.value,
        expiry_date=expiry,
        type=SELL_TYPE,
        created_at=now,
    )
    insert_listing(store, listing)

    logger.info("Coupon %s listed for sale by %s", listing.coupon_id, seller.uid)
    return listing


def list_my_listings(store: DocumentStore, identity: Optional[Identity]) -> List[CouponListing]:
    """The caller's own listings that are still for sale."""

    owner = _require_identity(identity, "Please log in to view your profile.")
    return list_listings_by_owner(store, owner.uid)


def search_exchange_matches(
    store: DocumentStore,
    identity: Optional[Identity],
    name: str,
    category: str,
    price: str,
) -> List[CouponListing]:
    """
    Find other users' listings to exchange against.

    A listing matches when its category equals `category` (ignoring any emoji
    prefix on either side) or its value equals `price`. All three inputs are
    required; `name` only gates the search.
    """
    requester = _require_identity(identity, "Please log in to search coupons.")

    if not name.strip() or not category.strip() or not price.strip():
        raise ListingValidationError("Please fill in all fields")

    wanted_value = parse_coupon_value(price)
    wanted_category = normalize_category(category)

    return [
        listing
        for listing in list_other_users_listings(store, requester.uid)
        if (wanted_category and normalize_category(listing.category) == wanted_category)
        or (wanted_value is not None and listing.value == wanted_value)
    ]


__all__ = [
    "NewListingForm",
    "list_listings_for_buyer",
    "browse_sections",
    "parse_expiry_date",
    "create_listing",
    "list_my_listings",
    "search_exchange_matches",
]
