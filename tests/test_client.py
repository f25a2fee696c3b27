"""
Tests for `repositories/client.py`.

The shared client keeps the server key; sign-in and sign-up get clients of
their own, so a user's session never reaches the shared client's headers.
"""

from unittest.mock import MagicMock

import pytest

from repositories import client as client_module
from repositories.settings import Settings


@pytest.fixture
def configured(monkeypatch):
    settings = Settings(supabase_url="https://project.supabase.co", supabase_key="service-role-key")
    created = []

    def fake_create_client(url, key, options=None):
        created.append((url, key, options))
        return MagicMock()

    monkeypatch.setattr(client_module, "get_settings", lambda: settings)
    monkeypatch.setattr(client_module, "create_client", fake_create_client)
    client_module.get_supabase.cache_clear()
    yield created
    client_module.get_supabase.cache_clear()


def test_shared_client_is_created_once(configured) -> None:
    assert client_module.get_supabase() is client_module.get_supabase()
    assert len(configured) == 1


def test_auth_clients_are_never_the_shared_client(configured) -> None:
    shared = client_module.get_supabase()

    first = client_module.create_auth_client()
    second = client_module.create_auth_client()

    assert first is not shared
    assert second is not first
    url, key, options = configured[-1]
    assert (url, key) == ("https://project.supabase.co", "service-role-key")
    assert options.persist_session is False
    assert options.auto_refresh_token is False


def test_missing_credentials_raise(monkeypatch) -> None:
    monkeypatch.setattr(client_module, "get_settings", lambda: Settings())

    with pytest.raises(RuntimeError, match="SUPABASE_URL"):
        client_module.create_auth_client()
