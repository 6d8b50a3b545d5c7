"""Claim and redemption endpoints.

POST /v1/claims            - claim one unit of an offer
GET  /v1/claims/{claimId}  - reward page lookup
POST /v1/redemptions       - in-store redemption (one time only)
"""

from fastapi import APIRouter, Path, Request

from rewards.schemas import (
    ERROR_RESPONSES,
    ClaimRequest,
    ClaimResponse,
    ClaimView,
    RedeemRequest,
    RedeemResponse,
)
from rewards.services.claims import ClaimCommand, claim_offer
from rewards.services.redemption import get_claim_view, redeem_claim

router = APIRouter()


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


@router.post("/claims", response_model=ClaimResponse, status_code=201, responses=ERROR_RESPONSES)
async def create_claim(body: ClaimRequest, request: Request) -> ClaimResponse:
    """Claim one unit of an offer.

    Error codes: NOT_FOUND, OUT_OF_STOCK, INVALID_INPUT, UPSTREAM_UNAVAILABLE,
    COOLDOWN (only when the server-side throttle is enabled).

    The throttle is checked before the offer is loaded, so a throttled visitor
    gets COOLDOWN even for an unknown offer id.
    """
    result = await claim_offer(
        ClaimCommand(
            offer_id=body.offer_id,
            contact_handle=body.contact_handle,
            delivery_method=body.delivery_method,
        ),
        visitor_ip=_client_ip(request),
    )
    return ClaimResponse(claim_id=result.claim_id, offer=result.content)


@router.get("/claims/{claim_id}", response_model=ClaimView, responses=ERROR_RESPONSES)
async def get_claim(
    claim_id: str = Path(min_length=1, max_length=200, pattern=r"^[a-zA-Z0-9_-]+$"),
) -> ClaimView:
    """Get a claimed reward (shows whether it was already redeemed)."""
    return await get_claim_view(claim_id)


@router.post("/redemptions", response_model=RedeemResponse, responses=ERROR_RESPONSES)
async def redeem(body: RedeemRequest) -> RedeemResponse:
    """Redeem a claimed reward in store.

    A claim can be redeemed once; the second attempt returns ALREADY_REDEEMED.
    """
    redeemed_at = await redeem_claim(body.claim_id)
    return RedeemResponse(claim_id=body.claim_id, redeemed_at=redeemed_at)
