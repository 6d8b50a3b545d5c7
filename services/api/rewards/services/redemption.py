"""Redemption: one-way CLAIMED -> REDEEMED transition, triggered in store.

A claim can be redeemed once. A second attempt on the same claim id is
rejected with AlreadyRedeemed; nothing moves a claim back to CLAIMED and no
endpoint re-creates a claim from its id.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from rewards.schemas import ClaimView
from rewards.services.errors import AlreadyRedeemed, NotFound, UpstreamUnavailable
from rewards.stores import offers as offer_store

logger = logging.getLogger("uvicorn.error")


async def redeem_claim(claim_id: str, *, now: datetime | None = None) -> datetime:
    """Mark a claim as redeemed.

    Returns:
        The redemption time.

    Raises:
        NotFound: no claim with this id.
        AlreadyRedeemed: the claim was redeemed before.
        UpstreamUnavailable: the store could not be reached.
    """
    now = now or datetime.now(timezone.utc)
    try:
        transitioned = await offer_store.mark_claim_redeemed(claim_id, now)
        if transitioned:
            logger.info(f"Claim {claim_id} redeemed")
            return now
        existing = await offer_store.get_claim(claim_id)
    except (SQLAlchemyError, OSError) as e:
        logger.exception(f"Redemption of claim {claim_id} failed")
        raise UpstreamUnavailable("claim store unavailable", claim_id=claim_id) from e

    if existing is None:
        raise NotFound("claim not found", claim_id=claim_id)

    logger.warning(f"Repeated redemption attempt for claim {claim_id}")
    raise AlreadyRedeemed(
        "claim already redeemed",
        claim_id=claim_id,
        redeemed_at=existing.redeemed_at.isoformat() if existing.redeemed_at else None,
    )


async def get_claim_view(claim_id: str) -> ClaimView:
    """Look up a claim for the customer's reward page."""
    try:
        claim = await offer_store.get_claim(claim_id)
    except (SQLAlchemyError, OSError) as e:
        raise UpstreamUnavailable("claim store unavailable", claim_id=claim_id) from e
    if claim is None:
        raise NotFound("claim not found", claim_id=claim_id)
    return ClaimView.from_claim(claim)
