"""Pydantic schemas for API request/response validation."""

from rewards.schemas.common import ERROR_RESPONSES, ErrorDetail, ErrorResponse
from rewards.schemas.offers import OfferContent, SelectionResponse
from rewards.schemas.claims import (
    ClaimRequest,
    ClaimResponse,
    ClaimView,
    RedeemRequest,
    RedeemResponse,
)

__all__ = [
    "ERROR_RESPONSES",
    "ErrorDetail",
    "ErrorResponse",
    "OfferContent",
    "SelectionResponse",
    "ClaimRequest",
    "ClaimResponse",
    "ClaimView",
    "RedeemRequest",
    "RedeemResponse",
]
