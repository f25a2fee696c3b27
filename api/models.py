"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from domain.coupon import CouponListing
from domain.identity import UserProfile
from domain.transaction import TransactionRecord


# ============================================================================
# Listing Models
# ============================================================================

class ListingResponse(BaseModel):
    """Single coupon listing in API response."""
    coupon_id: str
    name: Optional[str] = None
    value: Optional[Decimal] = None
    details: Optional[str] = None
    category: Optional[str] = None
    expiry_date: Optional[datetime] = None
    seller_id: Optional[str] = None
    seller_email: Optional[str] = None
    is_expired: bool = False
    is_expiring_soon: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "coupon_id": "8f14e45fceea167a5a36dedd4bea2543",
                "name": "Pizza 20% off",
                "value": "250",
                "details": "Valid on large pizzas",
                "category": "Food",
                "expiry_date": "2025-11-04T23:59:59Z",
                "seller_id": "user-123",
                "seller_email": "seller@example.com",
                "is_expired": False,
                "is_expiring_soon": True
            }
        }

    @staticmethod
    def from_listing(listing: CouponListing, *, is_expired: bool = False, is_expiring_soon: bool = False) -> "ListingResponse":
        return ListingResponse(
            coupon_id=listing.coupon_id,
            name=listing.name,
            value=listing.value,
            details=listing.details,
            category=listing.category,
            expiry_date=listing.expiry_date,
            seller_id=listing.user_id,
            seller_email=listing.user_email,
            is_expired=is_expired,
            is_expiring_soon=is_expiring_soon,
        )


class ListingSectionResponse(BaseModel):
    """Listings grouped under one expiry section."""
    title: str
    bucket: str
    items: List[ListingResponse]


class BrowseResponse(BaseModel):
    """Response for browsing listings to buy."""
    sections: List[ListingSectionResponse]
    total_count: int
    filters_applied: dict


class NewListingRequest(BaseModel):
    """Request to list a coupon for sale."""
    name: str = Field(..., description="Coupon display name")
    value: str = Field(..., description="Monetary value")
    details: str = Field(..., description="Free-text details")
    category: str = Field(..., description="Category label, e.g. 'Food'")
    expiry_date: str = Field(..., description="Expiry date in DD-MM-YYYY format")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Pizza 20% off",
                "value": "250",
                "details": "Valid on large pizzas",
                "category": "Food",
                "expiry_date": "04-11-2025"
            }
        }


class ExchangeMatchesResponse(BaseModel):
    items: List[ListingResponse]
    total_count: int


# ============================================================================
# Purchase Models
# ============================================================================

class TransactionResponse(BaseModel):
    """A committed purchase ledger entry."""
    transaction_id: str
    coupon_id: str
    coupon_name: str
    coupon_value: Decimal
    buyer_id: str
    buyer_email: str
    seller_id: str
    seller_email: str
    type: str
    created_at: datetime

    @staticmethod
    def from_record(record: TransactionRecord) -> "TransactionResponse":
        return TransactionResponse(
            transaction_id=record.transaction_id,
            coupon_id=record.coupon_id,
            coupon_name=record.coupon_name,
            coupon_value=record.coupon_value,
            buyer_id=record.buyer_id,
            buyer_email=record.buyer_email,
            seller_id=record.seller_id,
            seller_email=record.seller_email,
            type=record.type,
            created_at=record.created_at,
        )


class PurchaseResponse(BaseModel):
    """Response after a purchase attempt."""
    success: bool
    transaction: Optional[TransactionResponse] = None
    error_code: Optional[str] = None
    message: str

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "transaction": {
                    "transaction_id": "buyer-1_8f14e45fceea167a5a36dedd4bea2543",
                    "coupon_id": "8f14e45fceea167a5a36dedd4bea2543",
                    "coupon_name": "Pizza 20% off",
                    "coupon_value": "250",
                    "buyer_id": "buyer-1",
                    "buyer_email": "buyer@example.com",
                    "seller_id": "user-123",
                    "seller_email": "seller@example.com",
                    "type": "buy",
                    "created_at": "2025-10-01T12:00:00Z"
                },
                "error_code": None,
                "message": "You bought Pizza 20% off for 250"
            }
        }


# ============================================================================
# Profile Models
# ============================================================================

class ProfileModel(BaseModel):
    """User contact details."""
    name: str = ""
    gender: str = ""
    age: str = ""
    phone: str = ""
    address: str = ""
    dob: str = Field("", description="Date of birth in DD-MM-YYYY format")

    @staticmethod
    def from_profile(profile: UserProfile) -> "ProfileModel":
        return ProfileModel(**profile.to_document())

    def to_profile(self) -> UserProfile:
        return UserProfile(**self.model_dump())


class ActivityResponse(BaseModel):
    listed: List[ListingResponse]
    bought: List[TransactionResponse]


# ============================================================================
# Auth Models
# ============================================================================

class CredentialsRequest(BaseModel):
    email: str
    password: str


class SessionResponse(BaseModel):
    uid: str
    email: str
    access_token: Optional[str] = None

