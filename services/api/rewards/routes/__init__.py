"""API routes."""

from fastapi import APIRouter

from rewards.routes import admin, claims, offers

api_router = APIRouter()

# Visitor discovery (zip selection, random, direct link)
api_router.include_router(offers.router, prefix="/v1/offers", tags=["offers"])

# Claim + redemption
api_router.include_router(claims.router, prefix="/v1", tags=["claims"])

# Admin endpoints (reconciliation)
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])
