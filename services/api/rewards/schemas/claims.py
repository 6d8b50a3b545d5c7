"""Schemas for claiming and redeeming rewards."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from rewards.models import Claim
from rewards.schemas.offers import OfferContent


class ClaimRequest(BaseModel):
    """Request body for POST /v1/claims.

    contact_handle defaults to "" so that a missing handle reaches the claim
    service and fails there, after the offer existence and stock checks.
    """

    offer_id: str = Field(alias="offerId", min_length=1, max_length=100)
    contact_handle: str = Field(alias="contactHandle", default="", max_length=320)
    delivery_method: Literal["email", "sms"] | None = Field(alias="deliveryMethod", default=None)

    model_config = {"populate_by_name": True}


class ClaimResponse(BaseModel):
    claim_id: str = Field(alias="claimId")
    offer: OfferContent

    model_config = {"populate_by_name": True}


class ClaimView(BaseModel):
    """Customer-facing view of a claim (reward page)."""

    claim_id: str = Field(alias="claimId")
    offer_id: str = Field(alias="offerId")
    state: Literal["CLAIMED", "REDEEMED"]
    claimed_at: datetime = Field(alias="claimedAt")
    redeemed_at: datetime | None = Field(alias="redeemedAt", default=None)
    title: str
    subtitle: str | None = None
    logo_key: str | None = Field(alias="logoKey", default=None)
    address_url: str | None = Field(alias="addressUrl", default=None)
    location_text: str = Field(alias="locationText", default="")
    expires_at: datetime = Field(alias="expiresAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_claim(cls, claim: Claim) -> "ClaimView":
        return cls(
            claim_id=claim.claim_id,
            offer_id=claim.offer_id,
            state=claim.state.value,
            claimed_at=claim.claimed_at,
            redeemed_at=claim.redeemed_at,
            title=claim.title,
            subtitle=claim.subtitle,
            logo_key=claim.logo_key,
            address_url=claim.address_url,
            location_text=claim.location_text or "",
            expires_at=claim.expires_at,
        )


class RedeemRequest(BaseModel):
    claim_id: str = Field(alias="claimId", min_length=1, max_length=200)

    model_config = {"populate_by_name": True}


class RedeemResponse(BaseModel):
    ok: bool = True
    claim_id: str = Field(alias="claimId")
    redeemed_at: datetime = Field(alias="redeemedAt")

    model_config = {"populate_by_name": True}
