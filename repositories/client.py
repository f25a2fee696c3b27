"""
Supabase client initialization.

This module contains *only* the connection setup and exposes `get_supabase()`
for other repository modules. The client is created on first use so that
importing the repositories never requires credentials.

Sign-in and sign-up go through `create_auth_client()` instead. supabase-py
copies a signed-in user's JWT into its client's Authorization header, so the
shared client must never hold a user session; it keeps the server key.

Environment variables required (see repositories/settings.py):
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

from functools import lru_cache

from supabase import Client, ClientOptions, create_client  # type: ignore[import-not-found]

from repositories.settings import Settings, get_settings


def _require_credentials(settings: Settings) -> tuple[str, str]:
    if not settings.supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not settings.supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    return settings.supabase_url, settings.supabase_key


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Return the process-wide Supabase client, creating it on first call."""

    url, key = _require_credentials(get_settings())
    return create_client(url, key)


def create_auth_client() -> Client:
    """
    Return a new, unshared client for one sign-in, sign-up or sign-out.

    The session it may pick up is discarded with the client.
    """

    url, key = _require_credentials(get_settings())
    return create_client(
        url,
        key,
        options=ClientOptions(persist_session=False, auto_refresh_token=False),
    )


__all__ = ["create_auth_client", "get_supabase"]
