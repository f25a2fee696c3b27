"""
Listings API Endpoints.

Endpoints for browsing coupons to buy, listing a coupon for sale and
searching for exchange matches.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_app_settings, get_current_identity, get_store
from api.models import (
    BrowseResponse,
    ExchangeMatchesResponse,
    ListingResponse,
    ListingSectionResponse,
    NewListingRequest,
)
from domain.errors import ListingValidationError, UnauthenticatedError
from domain.expiry_bucket import ALL_SECTIONS, is_expiring_soon
from domain.identity import Identity
from domain.time import utc_now
from repositories.document_store import DocumentStore
from repositories.settings import Settings
from services.listing_service import (
    NewListingForm,
    browse_sections,
    create_listing,
    search_exchange_matches,
)

router = APIRouter()


@router.get(
    "/listings",
    response_model=BrowseResponse,
    summary="Browse Coupons",
    description="Coupons for sale by other users, grouped by how soon they expire."
)
def browse_listings(
    search: str = Query("", description="Case-insensitive name filter"),
    section: str = Query(ALL_SECTIONS, description="'All' or a section title, e.g. 'Expiring Today'"),
    identity: Optional[Identity] = Depends(get_current_identity),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    Browse listings to buy.

    **Sections:** Expiring Today, Expiring Within a Week, Expiring Within a
    Month, Remaining Coupons, Expired Coupons. With `section=All` only
    non-empty sections are returned.

    **Example usage:**
    - All sections: `GET /api/v1/listings`
    - Search by name: `GET /api/v1/listings?search=pizza`
    - One section: `GET /api/v1/listings?section=Expiring%20Today`
    """
    now = utc_now().astimezone(settings.tz)

    try:
        sections = browse_sections(store, identity, now=now, search=search, section=section)
    except UnauthenticatedError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch coupons: {str(e)}"
        )

    response_sections = [
        ListingSectionResponse(
            title=s.title,
            bucket=s.bucket.value,
            items=[
                ListingResponse.from_listing(
                    listing,
                    is_expired=listing.is_expired(now),
                    is_expiring_soon=is_expiring_soon(listing, now),
                )
                for listing in s.listings
            ],
        )
        for s in sections
    ]

    return BrowseResponse(
        sections=response_sections,
        total_count=sum(len(s.items) for s in response_sections),
        filters_applied={"search": search, "section": section},
    )


@router.post(
    "/listings",
    response_model=ListingResponse,
    status_code=201,
    summary="Sell Coupon",
    description="List a coupon for sale."
)
def sell_coupon(
    request: NewListingRequest,
    identity: Optional[Identity] = Depends(get_current_identity),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    List a coupon for sale.

    The expiry date is given as DD-MM-YYYY and stored as the end of that day.
    """
    form = NewListingForm(
        name=request.name,
        value=request.value,
        details=request.details,
        category=request.category,
        expiry_date=request.expiry_date,
    )

    try:
        listing = create_listing(store, identity, form, tz=settings.tz)
    except UnauthenticatedError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except ListingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to add coupon: {str(e)}"
        )

    return ListingResponse.from_listing(listing)


@router.get(
    "/exchange/matches",
    response_model=ExchangeMatchesResponse,
    summary="Search Exchange Matches",
    description="Other users' coupons matching a category or a value."
)
def exchange_matches(
    name: str = Query(..., description="Name of the coupon you offer"),
    category: str = Query(..., description="Category to match"),
    price: str = Query(..., description="Value to match"),
    identity: Optional[Identity] = Depends(get_current_identity),
    store: DocumentStore = Depends(get_store),
):
    try:
        matches = search_exchange_matches(store, identity, name, category, price)
    except UnauthenticatedError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except ListingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to search coupons: {str(e)}"
        )

    items = [ListingResponse.from_listing(listing) for listing in matches]
    return ExchangeMatchesResponse(items=items, total_count=len(items))
