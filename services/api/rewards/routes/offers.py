"""Offer discovery endpoints.

GET /v1/offers/select?zip=94105 - one offer near a zip code (or empty result)
GET /v1/offers/random           - one random claimable offer (or empty result)
GET /v1/offers/{offerId}        - direct link to a specific offer

Routers are thin: call services for business logic.
"""

from fastapi import APIRouter, Path, Query

from rewards.schemas import ERROR_RESPONSES, OfferContent, SelectionResponse
from rewards.services.errors import MSG_NO_OFFERS
from rewards.services.selection import get_offer_content, select_offer_for_zip, select_random_offer

router = APIRouter()


@router.get("/select", response_model=SelectionResponse, responses=ERROR_RESPONSES)
async def select_offer(
    zip_code: str = Query(
        alias="zip",
        description="Visitor zip code (5 digits, optional +4)",
        min_length=5,
        max_length=10,
        examples=["94105"],
    ),
) -> SelectionResponse:
    """Pick an offer for the visitor's zip code.

    Returns:
        SelectionResponse with `offer` set, or `offer: null` and a message
        when no claimable offer exists.
    """
    offer = await select_offer_for_zip(zip_code)
    if offer is None:
        return SelectionResponse(offer=None, message=MSG_NO_OFFERS)
    return SelectionResponse(offer=offer)


@router.get("/random", response_model=SelectionResponse)
async def random_offer() -> SelectionResponse:
    """Pick any claimable offer, without proximity."""
    offer = await select_random_offer()
    if offer is None:
        return SelectionResponse(offer=None, message=MSG_NO_OFFERS)
    return SelectionResponse(offer=offer)


@router.get("/{offer_id}", response_model=OfferContent, responses=ERROR_RESPONSES)
async def get_offer(
    offer_id: str = Path(
        description="Offer ID from a shared link or QR code",
        min_length=1,
        max_length=100,
        pattern=r"^[a-zA-Z0-9_-]+$",
    ),
) -> OfferContent:
    """Resolve a direct offer link.

    Raises:
        NOT_FOUND (404) for unknown ids, OUT_OF_STOCK (409) for expired or
        exhausted offers.
    """
    return await get_offer_content(offer_id)
