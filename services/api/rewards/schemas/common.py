"""Common schemas used across the API."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Structured error detail.

    `code` is the error kind: NOT_FOUND, OUT_OF_STOCK, INVALID_INPUT,
    UPSTREAM_UNAVAILABLE, ALREADY_REDEEMED, COOLDOWN or INTERNAL_ERROR.
    """

    code: str = Field(examples=["OUT_OF_STOCK"])
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail


# OpenAPI `responses=` for routes that raise domain errors
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "INVALID_INPUT"},
    404: {"model": ErrorResponse, "description": "NOT_FOUND"},
    409: {"model": ErrorResponse, "description": "OUT_OF_STOCK or ALREADY_REDEEMED"},
    503: {"model": ErrorResponse, "description": "UPSTREAM_UNAVAILABLE"},
}
