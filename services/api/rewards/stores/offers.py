"""Offer and claim repository.

Each function is one transaction (one round-trip for the write paths), so the
claim path can run decrement and record as two separate, ordered steps.

remaining_quantity is written only by decrement_if_available(), as a single
conditional UPDATE. Concurrent claimants serialize on the row; a claimant whose
UPDATE matches no row lost the race (or the offer is terminal).
"""

from datetime import datetime

from sqlalchemy import func, select, update

from rewards.models import Claim, ClaimState, Offer
from rewards.stores.postgres import get_session


async def get_offer(offer_id: str) -> Offer | None:
    """Point lookup by public offer id."""
    async with get_session() as session:
        result = await session.execute(select(Offer).where(Offer.offer_id == offer_id))
        return result.scalar_one_or_none()


async def list_claimable_offers(now: datetime, limit: int = 100) -> list[Offer]:
    """List offers with stock left and not yet expired as of `now`."""
    async with get_session() as session:
        result = await session.execute(
            select(Offer)
            .where(Offer.remaining_quantity > 0)
            .where(Offer.expires_at > now)
            .order_by(Offer.id.asc())
            .limit(limit)
        )
        return list(result.scalars().all())


async def decrement_if_available(offer_id: str, now: datetime) -> tuple[int, int] | None:
    """Atomically take one unit of stock.

    UPDATE offers SET remaining_quantity = remaining_quantity - 1,
                      units_consumed = units_consumed + 1
    WHERE offer_id = :offer_id AND remaining_quantity > 0 AND expires_at > :now
    RETURNING remaining_quantity, units_consumed

    Returns:
        (remaining_quantity, units_consumed) after the decrement, or None if
        no unit was available.
    """
    stmt = (
        update(Offer)
        .where(Offer.offer_id == offer_id)
        .where(Offer.remaining_quantity > 0)
        .where(Offer.expires_at > now)
        .values(
            remaining_quantity=Offer.remaining_quantity - 1,
            units_consumed=Offer.units_consumed + 1,
        )
        .returning(Offer.remaining_quantity, Offer.units_consumed)
        .execution_options(synchronize_session=False)
    )
    async with get_session() as session:
        row = (await session.execute(stmt)).first()
        if row is None:
            return None
        return int(row[0]), int(row[1])


async def insert_claim(claim: Claim) -> Claim:
    """Persist a claim keyed by its caller-supplied claim_id."""
    async with get_session() as session:
        session.add(claim)
    return claim


async def get_claim(claim_id: str) -> Claim | None:
    async with get_session() as session:
        result = await session.execute(select(Claim).where(Claim.claim_id == claim_id))
        return result.scalar_one_or_none()


async def mark_claim_redeemed(claim_id: str, now: datetime) -> bool:
    """Transition CLAIMED -> REDEEMED.

    Returns:
        True if this call performed the transition, False if the claim is
        missing or was already redeemed.
    """
    stmt = (
        update(Claim)
        .where(Claim.claim_id == claim_id)
        .where(Claim.state == ClaimState.CLAIMED)
        .values(state=ClaimState.REDEEMED, redeemed_at=now)
        .returning(Claim.claim_id)
        .execution_options(synchronize_session=False)
    )
    async with get_session() as session:
        return (await session.execute(stmt)).first() is not None


async def list_consumed_offers() -> list[Offer]:
    """Offers that have given out at least one unit."""
    async with get_session() as session:
        result = await session.execute(
            select(Offer).where(Offer.units_consumed > 0).order_by(Offer.id.asc())
        )
        return list(result.scalars().all())


async def claim_counts_by_offer() -> dict[str, int]:
    """Number of claim records per offer id."""
    async with get_session() as session:
        result = await session.execute(
            select(Claim.offer_id, func.count(Claim.id)).group_by(Claim.offer_id)
        )
        return {offer_id: int(count) for offer_id, count in result.all()}
