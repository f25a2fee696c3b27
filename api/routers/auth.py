"""
Auth API Endpoints.

Sign-in, sign-up and sign-out against the identity provider. The returned
access token is sent back as `Authorization: Bearer <token>` on later
requests, including sign-out, which revokes it.
"""

from fastapi import APIRouter, Depends, HTTPException, Response

from api.dependencies import get_identity_provider
from api.models import CredentialsRequest, SessionResponse
from domain.errors import AuthFailedError, AuthNetworkError
from repositories.identity_provider import AuthSession, SupabaseIdentityProvider
from services import auth_service

router = APIRouter()


def _to_response(session: AuthSession) -> SessionResponse:
    return SessionResponse(
        uid=session.identity.uid,
        email=session.identity.email,
        access_token=session.access_token,
    )


@router.post("/auth/sign-in", response_model=SessionResponse, summary="Sign In")
def sign_in(
    request: CredentialsRequest,
    provider: SupabaseIdentityProvider = Depends(get_identity_provider),
):
    try:
        session = auth_service.sign_in(provider, request.email, request.password)
    except AuthNetworkError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AuthFailedError as e:
        raise HTTPException(status_code=401, detail=f"Login Failed: {e}")
    return _to_response(session)


@router.post("/auth/sign-up", response_model=SessionResponse, status_code=201, summary="Sign Up")
def sign_up(
    request: CredentialsRequest,
    provider: SupabaseIdentityProvider = Depends(get_identity_provider),
):
    try:
        session = auth_service.sign_up(provider, request.email, request.password)
    except AuthNetworkError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AuthFailedError as e:
        raise HTTPException(status_code=400, detail=f"Registration Failed: {e}")
    return _to_response(session)


@router.post("/auth/sign-out", status_code=204, summary="Sign Out")
def sign_out(provider: SupabaseIdentityProvider = Depends(get_identity_provider)):
    """Revoke the session of the bearer token sent with the request."""
    try:
        auth_service.sign_out(provider)
    except AuthNetworkError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AuthFailedError as e:
        raise HTTPException(status_code=401, detail=f"Logout Failed: {e}")
    return Response(status_code=204)
