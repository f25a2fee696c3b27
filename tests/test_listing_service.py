"""
Tests for `services/listing_service.py`.

Covers:
- Discovery shows other users' "sell" listings only, soonest expiry first.
- Browse sections honour search and section selection.
- Selling validates every field before anything is written.
- Exchange search matches on category or on value.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from domain.errors import ListingValidationError, UnauthenticatedError
from domain.expiry_bucket import ExpiryBucket
from services.listing_service import (
    NewListingForm,
    browse_sections,
    create_listing,
    list_listings_for_buyer,
    list_my_listings,
    parse_expiry_date,
    search_exchange_matches,
)
from tests.fakes import NOW, listing_data


def _form(**overrides) -> NewListingForm:
    fields = {
        "name": "Movie night",
        "value": "300",
        "details": "Two tickets, weekdays only",
        "category": "Others",
        "expiry_date": "20-06-2025",
    }
    fields.update(overrides)
    return NewListingForm(**fields)


def test_discovery_excludes_own_and_non_sell_listings(store, seller, buyer) -> None:
    store.seed("coupons", "theirs", listing_data(seller))
    store.seed("coupons", "mine", listing_data(buyer))
    store.seed("coupons", "swap", listing_data(seller, type_="exchange"))
    store.seed("coupons", "orphan", {k: v for k, v in listing_data(seller).items() if k != "userId"})

    listings = list_listings_for_buyer(store, buyer)

    assert [l.coupon_id for l in listings] == ["theirs"]


def test_discovery_sorts_by_expiry_with_missing_first(store, seller, buyer) -> None:
    store.seed("coupons", "late", listing_data(seller, expiry=NOW + timedelta(days=40)))
    store.seed("coupons", "soon", listing_data(seller, expiry=NOW + timedelta(hours=2)))
    store.seed("coupons", "broken", listing_data(seller, expiry=None))
    store.seed("coupons", "mid", listing_data(seller, expiry=NOW + timedelta(days=5)))

    listings = list_listings_for_buyer(store, buyer)

    assert [l.coupon_id for l in listings] == ["broken", "soon", "mid", "late"]


def test_discovery_requires_identity(store) -> None:
    with pytest.raises(UnauthenticatedError) as excinfo:
        list_listings_for_buyer(store, None)

    assert excinfo.value.message == "Please log in to view coupons."


def test_browse_sections_filters_by_search_and_section(store, seller, buyer) -> None:
    store.seed("coupons", "pizza", listing_data(seller, name="Pizza deal", expiry=NOW + timedelta(days=3)))
    store.seed("coupons", "shoes", listing_data(seller, name="Shoes", expiry=NOW + timedelta(days=3)))
    store.seed("coupons", "flight", listing_data(seller, name="Pizza flight", expiry=NOW + timedelta(days=60)))

    sections = browse_sections(store, buyer, now=NOW, search="pizza", section="Expiring Within a Week")

    assert len(sections) == 1
    assert sections[0].bucket == ExpiryBucket.WITHIN_WEEK
    assert [l.coupon_id for l in sections[0].listings] == ["pizza"]


def test_create_listing_writes_sell_document(store, seller) -> None:
    listing = create_listing(store, seller, _form(), now=NOW)

    assert listing.type == "sell"
    assert listing.value == Decimal("300")
    assert listing.expiry_date == datetime(2025, 6, 20, 23, 59, 59, tzinfo=timezone.utc)

    stored = store.data("coupons", listing.coupon_id)
    assert stored["userId"] == "seller-1"
    assert stored["userEmail"] == "seller@example.com"
    assert stored["type"] == "sell"
    assert stored["category"] == "Others"
    assert stored["value"] == 300.0


def test_created_listing_is_visible_to_others_but_not_owner(store, seller, buyer) -> None:
    listing = create_listing(store, seller, _form(), now=NOW)

    assert [l.coupon_id for l in list_listings_for_buyer(store, buyer)] == [listing.coupon_id]
    assert list_listings_for_buyer(store, seller) == []
    assert [l.coupon_id for l in list_my_listings(store, seller)] == [listing.coupon_id]


def test_create_listing_requires_identity(store) -> None:
    with pytest.raises(UnauthenticatedError):
        create_listing(store, None, _form(), now=NOW)


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"details": "   "},
        {"value": "ten"},
        {"value": "-5"},
        {"category": "Pets"},
        {"expiry_date": "2025-06-20"},
        {"expiry_date": "31-02-2026"},
        {"expiry_date": "20-06-2024"},
        {"expiry_date": "20-06-2101"},
        {"expiry_date": "14-06-2025"},
    ],
)
def test_create_listing_rejects_invalid_input(store, seller, overrides) -> None:
    with pytest.raises(ListingValidationError):
        create_listing(store, seller, _form(**overrides), now=NOW)

    assert store.ids("coupons") == []


def test_expiry_date_is_end_of_day_in_configured_timezone() -> None:
    kolkata = ZoneInfo("Asia/Kolkata")

    expiry = parse_expiry_date("15-06-2025", NOW, kolkata)

    assert expiry == datetime(2025, 6, 15, 23, 59, 59, tzinfo=kolkata)
    assert expiry > NOW


def test_zero_value_listing_is_allowed(store, seller) -> None:
    listing = create_listing(store, seller, _form(value="0"), now=NOW)

    assert listing.value == Decimal("0")


def test_exchange_matches_on_category_or_value(store, seller, buyer) -> None:
    store.seed("coupons", "same-category", listing_data(seller, category="Travel", value=999))
    store.seed("coupons", "same-value", listing_data(seller, category="Beauty", value=250))
    store.seed("coupons", "neither", listing_data(seller, category="Beauty", value=100))
    store.seed("coupons", "own", listing_data(buyer, category="Travel", value=250))

    matches = search_exchange_matches(store, buyer, "Holiday", "Travel", "250")

    assert sorted(l.coupon_id for l in matches) == ["same-category", "same-value"]


def test_exchange_search_requires_all_fields(store, buyer) -> None:
    with pytest.raises(ListingValidationError):
        search_exchange_matches(store, buyer, "", "Travel", "250")


def test_exchange_search_requires_identity(store) -> None:
    with pytest.raises(UnauthenticatedError):
        search_exchange_matches(store, None, "Holiday", "Travel", "250")


def test_create_listing_accepts_emoji_prefixed_category(store, seller) -> None:
    listing = create_listing(store, seller, _form(category="\U0001F355 Food"), now=NOW)

    assert listing.category == "Food"
    assert store.data("coupons", listing.coupon_id)["category"] == "Food"


def test_exchange_matches_ignore_emoji_prefix(store, seller, buyer) -> None:
    store.seed("coupons", "app-written", listing_data(seller, category="✈️ Travel", value=999))
    store.seed("coupons", "api-written", listing_data(seller, category="Travel", value=999))
    store.seed("coupons", "other", listing_data(seller, category="\U0001F355 Food", value=999))

    matches = search_exchange_matches(store, buyer, "Holiday", "✈️ Travel", "1")

    assert sorted(l.coupon_id for l in matches) == ["api-written", "app-written"]
