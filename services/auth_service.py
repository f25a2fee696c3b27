"""
Authentication service.

Thin wrapper over the identity provider that turns provider errors into
AuthFailedError / AuthNetworkError with messages fit for the user.
"""

from __future__ import annotations

import logging

from supabase import AuthError, AuthRetryableError  # type: ignore[import-not-found]

from domain.errors import AuthFailedError, AuthNetworkError
from repositories.identity_provider import AuthSession, SupabaseIdentityProvider

logger = logging.getLogger(__name__)


def _require_credentials(email: str, password: str) -> None:
    if not email.strip() or not password:
        raise AuthFailedError("Email and password are required")


def sign_in(provider: SupabaseIdentityProvider, email: str, password: str) -> AuthSession:
    _require_credentials(email, password)
    try:
        session = provider.sign_in(email.strip(), password)
    except AuthRetryableError as e:
        logger.warning("Sign-in network failure: %s", e)
        raise AuthNetworkError() from e
    except AuthError as e:
        raise AuthFailedError(str(e)) from e

    logger.info("User %s signed in", session.identity.uid)
    return session


def sign_up(provider: SupabaseIdentityProvider, email: str, password: str) -> AuthSession:
    _require_credentials(email, password)
    try:
        session = provider.sign_up(email.strip(), password)
    except AuthRetryableError as e:
        logger.warning("Sign-up network failure: %s", e)
        raise AuthNetworkError() from e
    except AuthError as e:
        raise AuthFailedError(str(e)) from e

    logger.info("Account created for %s", session.identity.uid)
    return session


def sign_out(provider: SupabaseIdentityProvider) -> None:
    """Revoke the caller's session; the access token stops working."""

    try:
        provider.sign_out()
    except AuthRetryableError as e:
        logger.warning("Sign-out network failure: %s", e)
        raise AuthNetworkError() from e
    except AuthError as e:
        raise AuthFailedError(str(e)) from e

    logger.info("Session signed out")


__all__ = ["sign_in", "sign_up", "sign_out"]
