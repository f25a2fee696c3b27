"""
Profile API Endpoints.

Endpoints for reading and saving contact details and viewing marketplace
activity (coupons listed and coupons bought).
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_current_identity, get_store
from api.models import ActivityResponse, ListingResponse, ProfileModel, TransactionResponse
from domain.errors import ProfileValidationError, UnauthenticatedError
from domain.identity import Identity
from repositories.document_store import DocumentStore
from services import profile_service

router = APIRouter()


@router.get("/profile", response_model=ProfileModel, summary="Get Profile")
def read_profile(
    identity: Optional[Identity] = Depends(get_current_identity),
    store: DocumentStore = Depends(get_store),
):
    """Return the caller's profile; blank fields if none has been saved."""
    try:
        profile = profile_service.get_profile(store, identity)
    except UnauthenticatedError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load profile data: {str(e)}"
        )
    return ProfileModel.from_profile(profile)


@router.put("/profile", response_model=ProfileModel, summary="Save Profile")
def update_profile(
    request: ProfileModel,
    identity: Optional[Identity] = Depends(get_current_identity),
    store: DocumentStore = Depends(get_store),
):
    try:
        profile = profile_service.save_profile(store, identity, request.to_profile())
    except UnauthenticatedError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except ProfileValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save profile details: {str(e)}"
        )
    return ProfileModel.from_profile(profile)


@router.get("/profile/activity", response_model=ActivityResponse, summary="Get Activity")
def read_activity(
    identity: Optional[Identity] = Depends(get_current_identity),
    store: DocumentStore = Depends(get_store),
):
    """Coupons the caller still has listed for sale and coupons they bought."""
    try:
        activity = profile_service.get_activity(store, identity)
    except UnauthenticatedError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load profile data: {str(e)}"
        )

    return ActivityResponse(
        listed=[ListingResponse.from_listing(l) for l in activity.listed],
        bought=[TransactionResponse.from_record(r) for r in activity.bought],
    )
