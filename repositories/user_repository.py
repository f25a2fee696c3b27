"""
User profile repository.

Profiles are keyed by the auth identity's uid and saved with merge semantics,
outside of any atomic unit.
"""

from __future__ import annotations

from typing import Optional

from domain.identity import UserProfile
from repositories.document_store import DocumentStore
from repositories.settings import get_settings


def get_profile(store: DocumentStore, uid: str) -> Optional[UserProfile]:
    """
    Get a user's stored profile.

    Returns:
        UserProfile or None if the user has never saved one
    """

    document = store.get(get_settings().users_table, uid)
    if document is None:
        return None
    return UserProfile.from_document(document.data)


def save_profile(store: DocumentStore, uid: str, profile: UserProfile) -> None:
    store.set(get_settings().users_table, uid, profile.to_document(), merge=True)


__all__ = ["get_profile", "save_profile"]
