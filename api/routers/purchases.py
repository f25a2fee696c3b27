"""
Purchases API Endpoints.

Endpoints for buying a listed coupon and looking up purchase records.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from api.dependencies import get_app_settings, get_current_identity, get_store
from api.models import PurchaseResponse, TransactionResponse
from domain.errors import (
    CouponExpiredError,
    CouponNotFoundError,
    StoreFailureError,
    UnauthenticatedError,
)
from domain.identity import Identity
from repositories.document_store import DocumentStore
from repositories.settings import Settings
from repositories.transaction_repository import get_transaction
from services.purchase_service import PurchaseRequest, execute_purchase

router = APIRouter()

_STATUS_BY_ERROR_CODE = {
    UnauthenticatedError.code: 401,
    CouponNotFoundError.code: 404,
    CouponExpiredError.code: 409,
    StoreFailureError.code: 503,
}


@router.post(
    "/purchases/{coupon_id}",
    response_model=PurchaseResponse,
    summary="Buy Coupon",
    description="Atomically transfer a listed coupon to the signed-in buyer."
)
def buy_coupon(
    coupon_id: str,
    identity: Optional[Identity] = Depends(get_current_identity),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    Buy a coupon listing.

    **Process:**
    1. Reads the listing inside an atomic unit
    2. Rejects it if it no longer exists or has expired
    3. Writes the transaction record `{buyerId}_{couponId}` and deletes the listing together

    **Failure status codes:**
    - 401: not signed in
    - 404: listing no longer exists (e.g. already bought)
    - 409: listing has expired
    - 503: the store could not commit (conflict or network failure)

    The response body always carries `message`; on failure the caller should
    keep its local listing state unchanged.
    """
    result = execute_purchase(
        store,
        PurchaseRequest(buyer=identity, coupon_id=coupon_id),
        defaults=settings.purchase_defaults,
    )

    body = PurchaseResponse(
        success=result.success,
        transaction=TransactionResponse.from_record(result.record) if result.record else None,
        error_code=result.error_code,
        message=result.message,
    )

    if result.success:
        return body

    status_code = _STATUS_BY_ERROR_CODE.get(result.error_code or "", 500)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@router.get(
    "/purchases/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get Purchase Record",
    description="Fetch a purchase record visible to its buyer or seller."
)
def get_purchase(
    transaction_id: str,
    identity: Optional[Identity] = Depends(get_current_identity),
    store: DocumentStore = Depends(get_store),
):
    if identity is None:
        raise HTTPException(status_code=401, detail="Please log in to view purchases.")

    try:
        record = get_transaction(store, transaction_id)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch purchase: {str(e)}"
        )

    if record is None or identity.uid not in (record.buyer_id, record.seller_id):
        raise HTTPException(
            status_code=404,
            detail=f"Purchase not found: {transaction_id}"
        )

    return TransactionResponse.from_record(record)
