"""
Request-scoped dependencies for the API routers.

Tests replace these through `app.dependency_overrides`.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException
from supabase import AuthRetryableError  # type: ignore[import-not-found]

from domain.identity import Identity
from repositories.client import create_auth_client, get_supabase
from repositories.document_store import DocumentStore, SupabaseDocumentStore
from repositories.identity_provider import SupabaseIdentityProvider
from repositories.settings import Settings, get_settings


def get_app_settings() -> Settings:
    return get_settings()


def get_store(settings: Settings = Depends(get_app_settings)) -> DocumentStore:
    return SupabaseDocumentStore(
        get_supabase(),
        commit_rpc=settings.commit_rpc,
        max_attempts=settings.transaction_max_attempts,
    )


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_identity_provider(authorization: Optional[str] = Header(None)) -> SupabaseIdentityProvider:
    """Provider for sign-in, sign-up and sign-out, on a client of its own."""

    return SupabaseIdentityProvider(create_auth_client(), access_token=_bearer_token(authorization))


def get_current_identity(
    authorization: Optional[str] = Header(None),
) -> Optional[Identity]:
    """Identity for the bearer token, or None when the request is anonymous."""

    token = _bearer_token(authorization)
    if token is None:
        return None

    provider = SupabaseIdentityProvider(get_supabase(), access_token=token)
    try:
        return provider.current_identity()
    except AuthRetryableError:
        raise HTTPException(
            status_code=503,
            detail="Please check your internet connection and try again.",
        )
