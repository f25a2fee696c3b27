"""
Tests for `services/profile_service.py`.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from domain.errors import ProfileValidationError, UnauthenticatedError
from domain.identity import UserProfile
from services import profile_service
from services.purchase_service import purchase_coupon
from tests.fakes import NOW, FixedClock, listing_data


def test_profile_defaults_to_blank_when_never_saved(store, buyer) -> None:
    assert profile_service.get_profile(store, buyer) == UserProfile()


def test_save_profile_merges_into_existing_document(store, buyer) -> None:
    store.seed("users", "buyer-1", {"name": "Old", "favouriteColour": "teal"})

    profile_service.save_profile(store, buyer, UserProfile(name="Asha", phone="555-0100", dob="01-02-1990"))

    assert profile_service.get_profile(store, buyer) == UserProfile(name="Asha", phone="555-0100", dob="01-02-1990")
    assert store.data("users", "buyer-1")["favouriteColour"] == "teal"


def test_profile_requires_identity(store) -> None:
    with pytest.raises(UnauthenticatedError):
        profile_service.get_profile(store, None)
    with pytest.raises(UnauthenticatedError):
        profile_service.save_profile(store, None, UserProfile())


@pytest.mark.parametrize("dob", ["1990-02-01", "31-02-1990", "yesterday"])
def test_save_rejects_malformed_dob(store, buyer, dob) -> None:
    with pytest.raises(ProfileValidationError):
        profile_service.save_profile(store, buyer, UserProfile(dob=dob))

    assert store.data("users", "buyer-1") is None


def test_stored_free_text_dob_is_read_as_is(store, buyer) -> None:
    store.seed("users", "buyer-1", {"name": "A", "dob": "1/2/2000"})

    profile = profile_service.get_profile(store, buyer)

    assert profile == UserProfile(name="A", dob="1/2/2000")


def test_activity_lists_own_listings_and_purchases(store, seller, buyer) -> None:
    store.seed("coupons", "still-listed", listing_data(buyer, name="Gym pass"))
    store.seed("coupons", "c1", listing_data(seller, name="Pizza"))
    store.seed("coupons", "c2", listing_data(seller, name="Burger"))

    purchase_coupon(store, buyer, "c1", clock=FixedClock(NOW))
    purchase_coupon(store, buyer, "c2", clock=FixedClock(NOW + timedelta(minutes=5)))

    activity = profile_service.get_activity(store, buyer)

    assert [l.coupon_id for l in activity.listed] == ["still-listed"]
    assert [r.coupon_name for r in activity.bought] == ["Burger", "Pizza"]
    assert profile_service.get_activity(store, seller).bought == []
