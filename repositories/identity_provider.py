"""
Identity provider backed by Supabase Auth.

Exposes the signed-in identity (uid + email) for the current session, or for
an explicit access token when requests carry one. Sign-in, sign-up and
sign-out are passed straight through; error mapping lives in the auth service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from supabase import AuthApiError, AuthSessionMissingError  # type: ignore[import-not-found]

from domain.identity import Identity


class IdentityProvider(Protocol):
    def current_identity(self) -> Optional[Identity]: ...


@dataclass(frozen=True, slots=True)
class AuthSession:
    identity: Identity
    access_token: Optional[str]


def _user_to_identity(user: Any) -> Optional[Identity]:
    if user is None or not getattr(user, "id", None):
        return None
    return Identity(uid=str(user.id), email=str(getattr(user, "email", None) or ""))


class SupabaseIdentityProvider:
    def __init__(self, client: Any, access_token: Optional[str] = None) -> None:
        self._client = client
        self._access_token = access_token

    def current_identity(self) -> Optional[Identity]:
        """
        Resolve the signed-in identity.

        Returns None when there is no session or the token is rejected.
        Network failures propagate.
        """

        try:
            response = self._client.auth.get_user(self._access_token)
        except AuthSessionMissingError:
            return None
        except AuthApiError as e:
            # expired or malformed token
            if e.status in (401, 403):
                return None
            raise

        if response is None:
            return None
        return _user_to_identity(getattr(response, "user", None))

    def sign_in(self, email: str, password: str) -> AuthSession:
        response = self._client.auth.sign_in_with_password({"email": email, "password": password})
        return self._to_session(response)

    def sign_up(self, email: str, password: str) -> AuthSession:
        response = self._client.auth.sign_up({"email": email, "password": password})
        return self._to_session(response)

    def sign_out(self) -> None:
        """Revoke the session behind this provider's access token."""

        if not self._access_token:
            raise AuthSessionMissingError()
        self._client.auth.admin.sign_out(self._access_token)

    @staticmethod
    def _to_session(response: Any) -> AuthSession:
        identity = _user_to_identity(getattr(response, "user", None))
        if identity is None:
            raise RuntimeError("Identity provider returned no user")
        session = getattr(response, "session", None)
        return AuthSession(
            identity=identity,
            access_token=getattr(session, "access_token", None) if session is not None else None,
        )


__all__ = ["AuthSession", "IdentityProvider", "SupabaseIdentityProvider"]
