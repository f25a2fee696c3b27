"""
Profile service.

Reads and saves the caller's contact details and gathers their marketplace
activity: listings still for sale and coupons they have bought.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from domain.coupon import CouponListing
from domain.errors import UnauthenticatedError
from domain.identity import Identity, UserProfile
from domain.transaction import TransactionRecord
from repositories import user_repository
from repositories.coupon_repository import list_listings_by_owner
from repositories.document_store import DocumentStore
from repositories.transaction_repository import list_purchases_by_buyer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProfileActivity:
    listed: List[CouponListing]
    bought: List[TransactionRecord]


def _require_identity(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise UnauthenticatedError("Please log in to view your profile.")
    return identity


def get_profile(store: DocumentStore, identity: Optional[Identity]) -> UserProfile:
    """The caller's profile, or a blank one if they have never saved it."""

    user = _require_identity(identity)
    return user_repository.get_profile(store, user.uid) or UserProfile()


def save_profile(store: DocumentStore, identity: Optional[Identity], profile: UserProfile) -> UserProfile:
    user = _require_identity(identity)
    profile.validate()
    user_repository.save_profile(store, user.uid, profile)
    logger.info("Profile saved for %s", user.uid)
    return profile


def get_activity(store: DocumentStore, identity: Optional[Identity]) -> ProfileActivity:
    user = _require_identity(identity)
    return ProfileActivity(
        listed=list_listings_by_owner(store, user.uid),
        bought=list_purchases_by_buyer(store, user.uid),
    )


__all__ = ["ProfileActivity", "get_profile", "save_profile", "get_activity"]
