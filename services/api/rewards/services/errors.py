"""Domain errors raised by the allocation, claim and redemption services.

Every error carries a stable `error_kind` (the `code` in the API error body),
an HTTP status and the user-visible message for that failure class.
"""

from typing import Any

MSG_NO_OFFERS = "No offers are available right now."
MSG_UNAVAILABLE = "This offer is no longer available."
MSG_COOLDOWN = "Please wait before trying again."
MSG_UPSTREAM = "We could not process your request, please try again."
MSG_NOT_FOUND = "We could not find that reward."
MSG_INVALID = "Some required information is missing or invalid."
MSG_ALREADY_REDEEMED = "This reward has already been used and cannot be used again."


class RewardsError(Exception):
    """Base class for domain errors."""

    error_kind = "INTERNAL_ERROR"
    http_status = 500
    message = MSG_UPSTREAM

    def __init__(self, description: str | None = None, **detail: Any):
        super().__init__(description or self.message)
        self.description = description
        self.detail: dict[str, Any] = detail

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.error_kind,
                "message": self.message,
                "detail": self.detail or None,
            }
        }


class NotFound(RewardsError):
    error_kind = "NOT_FOUND"
    http_status = 404
    message = MSG_NOT_FOUND


class OutOfStock(RewardsError):
    """Offer has no stock left, or has expired."""

    error_kind = "OUT_OF_STOCK"
    http_status = 409
    message = MSG_UNAVAILABLE


class InvalidInput(RewardsError):
    error_kind = "INVALID_INPUT"
    http_status = 400
    message = MSG_INVALID


class UpstreamUnavailable(RewardsError):
    """Offer store or another collaborator failed."""

    error_kind = "UPSTREAM_UNAVAILABLE"
    http_status = 503
    message = MSG_UPSTREAM
    retryable = True

    def __init__(self, description: str | None = None, **detail: Any):
        super().__init__(description, **detail)
        self.detail.setdefault("retryable", self.retryable)


class ClaimNotRecorded(UpstreamUnavailable):
    """Stock was decremented but the claim record could not be written."""

    retryable = False


class AlreadyRedeemed(RewardsError):
    error_kind = "ALREADY_REDEEMED"
    http_status = 409
    message = MSG_ALREADY_REDEEMED


class CooldownActive(RewardsError):
    """Visitor claimed recently and must wait out the cooldown window."""

    error_kind = "COOLDOWN"
    http_status = 429
    message = MSG_COOLDOWN

    def __init__(self, remaining_ms: int, description: str | None = None, **detail: Any):
        super().__init__(description, remaining_ms=remaining_ms, **detail)
        self.remaining_ms = remaining_ms


ERRORS_BY_KIND: dict[str, type[RewardsError]] = {
    cls.error_kind: cls
    for cls in (NotFound, OutOfStock, InvalidInput, UpstreamUnavailable, AlreadyRedeemed, CooldownActive)
}
