"""
Domain exceptions.

Purchase failures form a small closed taxonomy; each carries a stable `code`
used by the API layer and a human-readable message shown to the user.
"""

from __future__ import annotations


class PurchaseError(Exception):
    """Base exception for coupon purchase failures."""

    code: str = "PURCHASE_FAILED"
    default_message: str = "Could not complete purchase."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(PurchaseError):
    """Raised when no signed-in identity is available."""

    code = "UNAUTHENTICATED"
    default_message = "You must be logged in to buy coupons."


class CouponNotFoundError(PurchaseError):
    """Raised when the listing no longer exists (e.g. already purchased)."""

    code = "NOT_FOUND"
    default_message = "Coupon no longer exists."


class CouponExpiredError(PurchaseError):
    """Raised when the listing's expiry has passed at commit time."""

    code = "EXPIRED"
    default_message = "This coupon has expired."


class StoreFailureError(PurchaseError):
    """Raised when the atomic unit could not commit (conflict or network failure)."""

    code = "STORE_FAILURE"
    default_message = "Could not complete purchase. Please try again."


class ListingValidationError(ValueError):
    """Raised when a new listing fails validation."""


class ProfileValidationError(ValueError):
    """Raised when profile fields fail validation."""


class AuthFailedError(Exception):
    """Raised when sign-in or sign-up is rejected."""


class AuthNetworkError(AuthFailedError):
    """Raised when the identity provider cannot be reached."""

    def __init__(self, message: str = "Please check your internet connection and try again.") -> None:
        super().__init__(message)
