"""Schemas for offer discovery (/v1/offers)."""

from datetime import datetime

from pydantic import BaseModel, Field

from rewards.models import Offer


class OfferContent(BaseModel):
    """Display payload of an offer, as shown to a visitor."""

    offer_id: str = Field(alias="offerId")
    title: str
    subtitle: str | None = None
    logo_key: str | None = Field(alias="logoKey", default=None)
    address_url: str | None = Field(alias="addressUrl", default=None)
    location_text: str = Field(alias="locationText", default="")
    expires_at: datetime = Field(alias="expiresAt")
    remaining_quantity: int = Field(alias="remainingQuantity", ge=0)
    business_id: str | None = Field(alias="businessId", default=None)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_offer(cls, offer: Offer) -> "OfferContent":
        return cls(
            offer_id=offer.offer_id,
            title=offer.title,
            subtitle=offer.subtitle,
            logo_key=offer.logo_key,
            address_url=offer.address_url,
            location_text=offer.location_text or "",
            expires_at=offer.expires_at,
            remaining_quantity=offer.remaining_quantity,
            business_id=offer.business_id,
        )


class SelectionResponse(BaseModel):
    """Response for offer discovery: one offer, or an explicit empty result."""

    offer: OfferContent | None = None
    message: str | None = None
