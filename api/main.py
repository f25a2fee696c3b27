"""
Coupon Exchange API - Main Application.

FastAPI application with CORS enabled for the mobile client.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from repositories.settings import get_settings

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Coupon Exchange API",
    description="REST API for buying, selling and exchanging discount coupons",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# TODO: Restrict origins once the mobile client's web build has a fixed domain
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "coupon-exchange-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Coupon Exchange API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import auth, listings, profile, purchases

app.include_router(auth.router, prefix="/api/v1", tags=["Auth"])
app.include_router(listings.router, prefix="/api/v1", tags=["Listings"])
app.include_router(purchases.router, prefix="/api/v1", tags=["Purchases"])
app.include_router(profile.router, prefix="/api/v1", tags=["Profile"])
