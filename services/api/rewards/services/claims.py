"""Claim coordination: turn "visitor wants this offer" into stock + a claim.

Flow:
1. Load the offer                          -> NotFound
2. Offer must be claimable at read time    -> OutOfStock (expired / no stock)
3. Contact handle must be non-empty        -> InvalidInput
4. Decrement phase: one conditional UPDATE -> OutOfStock if no unit was left
5. Record phase: insert the claim row

If step 5 fails after step 4 succeeded, the unit stays consumed. The failure is
logged as a reconciliation case and surfaced as ClaimNotRecorded; it is never
retried here, since a retry would take a second unit. The orphaned unit shows
up in rewards.services.reconciliation.

No request de-duplication at this layer: every successful call takes one unit.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from rewards.models import Claim, ClaimState, Offer
from rewards.schemas import OfferContent
from rewards.services.errors import (
    ClaimNotRecorded,
    CooldownActive,
    InvalidInput,
    NotFound,
    OutOfStock,
    UpstreamUnavailable,
)
from rewards.settings import get_settings
from rewards.stores import offers as offer_store
from rewards.stores.redis import (
    acquire_claim_throttle,
    get_claim_throttle_ttl,
    release_claim_throttle,
)

logger = logging.getLogger("uvicorn.error")


@dataclass
class ClaimCommand:
    """Input of a claim attempt."""

    offer_id: str
    contact_handle: str
    delivery_method: str | None = None


@dataclass
class ClaimResult:
    claim_id: str
    content: OfferContent


def build_claim_id(offer_id: str, claimed_at: datetime, unit: int) -> str:
    """Claim id from (offer id, creation time) plus the consumed unit number.

    The unit number is unique per offer (it comes from the atomic decrement),
    so two claims in the same millisecond still get distinct ids.
    """
    return f"{offer_id}-{int(claimed_at.timestamp() * 1000)}-{unit}"


async def claim_offer(
    command: ClaimCommand,
    *,
    now: datetime | None = None,
    visitor_ip: str | None = None,
) -> ClaimResult:
    """Claim one unit of an offer.

    Args:
        command: Offer id and contact details.
        now: Claim time (defaults to current UTC time).
        visitor_ip: Client IP, used only by the optional server-side throttle.
            The throttle runs first: while it holds, every attempt from that
            IP fails with CooldownActive, whatever the offer.

    Returns:
        ClaimResult with the new claim id and the offer content.

    Raises:
        NotFound, OutOfStock, InvalidInput, UpstreamUnavailable,
        ClaimNotRecorded, CooldownActive (server throttle only).
    """
    now = now or datetime.now(timezone.utc)

    throttled = await _enter_throttle(visitor_ip)
    claimed = False
    try:
        result = await _claim(command, now)
        claimed = True
        return result
    finally:
        # The marker only stays for visitors who actually got a claim
        if throttled and not claimed:
            await _leave_throttle(visitor_ip)


async def _claim(command: ClaimCommand, now: datetime) -> ClaimResult:
    offer_id = command.offer_id

    try:
        offer = await offer_store.get_offer(offer_id)
    except (SQLAlchemyError, OSError) as e:
        logger.exception(f"Offer store unavailable while loading offer {offer_id}")
        raise UpstreamUnavailable("offer store unavailable", offer_id=offer_id) from e

    if offer is None:
        raise NotFound("offer not found", offer_id=offer_id)
    if offer.is_expired(now):
        raise OutOfStock("offer expired", offer_id=offer_id, reason="expired")
    if offer.remaining_quantity <= 0:
        raise OutOfStock("offer out of stock", offer_id=offer_id, reason="out_of_stock")

    contact = (command.contact_handle or "").strip()
    if not contact:
        raise InvalidInput("contact handle is required", field="contactHandle")

    # Decrement phase
    try:
        taken = await offer_store.decrement_if_available(offer_id, now)
    except (SQLAlchemyError, OSError) as e:
        logger.exception(f"Decrement failed for offer {offer_id}; no stock was taken")
        raise UpstreamUnavailable("offer store unavailable", offer_id=offer_id) from e

    if taken is None:
        logger.info(f"Offer {offer_id} ran out before decrement (lost race or expired)")
        raise OutOfStock("offer out of stock", offer_id=offer_id, reason="out_of_stock")

    remaining, unit = taken
    claim = _build_claim(offer, contact, command.delivery_method, now, unit)

    # Record phase
    try:
        await offer_store.insert_claim(claim)
    except (SQLAlchemyError, OSError) as e:
        logger.error(
            f"RECONCILIATION: offer {offer_id} unit {unit} was decremented but claim "
            f"{claim.claim_id} could not be recorded: {e}"
        )
        raise ClaimNotRecorded(
            "claim record failed after decrement",
            offer_id=offer_id,
            claim_id=claim.claim_id,
        ) from e

    logger.info(f"Claim {claim.claim_id} recorded for offer {offer_id} ({remaining} left)")
    content = OfferContent.from_offer(offer).model_copy(update={"remaining_quantity": remaining})
    return ClaimResult(claim_id=claim.claim_id, content=content)


def _build_claim(
    offer: Offer,
    contact: str,
    delivery_method: str | None,
    now: datetime,
    unit: int,
) -> Claim:
    return Claim(
        claim_id=build_claim_id(offer.offer_id, now, unit),
        offer_id=offer.offer_id,
        contact_handle=contact,
        delivery_method=delivery_method,
        state=ClaimState.CLAIMED,
        claimed_at=now,
        title=offer.title,
        subtitle=offer.subtitle,
        logo_key=offer.logo_key,
        address_url=offer.address_url,
        location_text=offer.location_text or "",
        expires_at=offer.expires_at,
        business_id=offer.business_id,
    )


# ============================================================
# Optional server-side throttle
# ============================================================


async def _enter_throttle(visitor_ip: str | None) -> bool:
    """Returns True if a throttle marker was set for this attempt."""
    ttl = get_settings().claim_throttle_seconds
    if ttl <= 0 or not visitor_ip:
        return False
    try:
        acquired = await acquire_claim_throttle(visitor_ip, ttl)
        if acquired:
            return True
        remaining = await get_claim_throttle_ttl(visitor_ip)
    except RuntimeError:
        logger.warning("Claim throttle enabled but Redis is not initialized; skipping")
        return False
    except (RedisError, OSError) as e:
        logger.warning(f"Claim throttle check failed, allowing claim: {e}")
        return False

    logger.warning(f"Claim throttled for {visitor_ip} ({remaining}s left)")
    raise CooldownActive(remaining_ms=remaining * 1000)


async def _leave_throttle(visitor_ip: str | None) -> None:
    try:
        await release_claim_throttle(visitor_ip or "")
    except (RuntimeError, RedisError, OSError) as e:
        logger.warning(f"Could not release claim throttle for {visitor_ip}: {e}")
