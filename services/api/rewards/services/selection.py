"""Proximity selection: which offer does a visitor see for a zip code.

Selection logic:
1. Read claimable offers (stock > 0, not expired) as of request time
2. Extract a zip from each offer's location text; offers without one are dropped
3. Rank ascending by distance to the requested zip
4. Roll once per request:
   - exact-zip matches exist:
     < 0.85 -> uniform pick among exact matches
     < 0.95 -> rank 1 (second closest), if it exists
     else   -> rank 2 (third closest), if it exists
     fallback -> rank 0
   - no exact match -> rank 0, always

Read-only: nothing here changes stock or creates claims.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from rewards.models import Offer
from rewards.schemas import OfferContent
from rewards.services.errors import InvalidInput, NotFound, OutOfStock, UpstreamUnavailable
from rewards.services.zipcodes import (
    NumericZipDistance,
    ZipDistance,
    default_zip_distance,
    extract_zip,
    normalize_requested_zip,
)
from rewards.settings import get_settings
from rewards.stores import offers as offer_store

logger = logging.getLogger("uvicorn.error")

_rng = random.Random()


@dataclass(frozen=True)
class TierWeights:
    """Probability of the exact-match and second-closest tiers.

    The third-closest tier gets whatever is left (1 - exact - second).
    """

    exact: float = 0.85
    second: float = 0.10

    @classmethod
    def from_settings(cls) -> "TierWeights":
        settings = get_settings()
        return cls(exact=settings.selection_exact_weight, second=settings.selection_second_weight)


@dataclass(frozen=True)
class RankedOffer:
    offer: Offer
    zip_code: str
    distance: float


def rank_offers(
    offers: list[Offer],
    target_zip: str,
    distance: ZipDistance | None = None,
) -> list[RankedOffer]:
    """Rank offers by distance to target_zip (closest first, stable)."""
    distance = distance or NumericZipDistance()
    ranked: list[RankedOffer] = []
    for offer in offers:
        zip_code = extract_zip(offer.location_text)
        if zip_code is None:
            continue
        ranked.append(RankedOffer(offer=offer, zip_code=zip_code, distance=distance(zip_code, target_zip)))
    ranked.sort(key=lambda c: c.distance)
    return ranked


def choose_candidate(
    ranked: list[RankedOffer],
    target_zip: str,
    rng: random.Random,
    weights: TierWeights = TierWeights(),
) -> RankedOffer | None:
    """Apply the tier policy to an already-ranked candidate list."""
    if not ranked:
        return None

    exact = [c for c in ranked if c.zip_code == target_zip]
    if not exact:
        return ranked[0]

    roll = rng.random()
    if roll < weights.exact:
        return rng.choice(exact)
    if roll < weights.exact + weights.second and len(ranked) > 1:
        return ranked[1]
    if len(ranked) > 2:
        return ranked[2]
    return ranked[0]


async def _load_claimable(now: datetime) -> list[Offer]:
    try:
        offers = await offer_store.list_claimable_offers(now, limit=get_settings().selection_scan_limit)
    except (SQLAlchemyError, OSError) as e:
        logger.exception("Offer store unavailable while listing offers")
        raise UpstreamUnavailable("offer store unavailable") from e
    # The query already filters; re-check so a terminal offer can never leak through.
    return [o for o in offers if o.is_claimable(now)]


async def select_offer_for_zip(
    zip_code: str,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
    distance: ZipDistance | None = None,
    weights: TierWeights | None = None,
) -> OfferContent | None:
    """Pick one claimable offer for a visitor in `zip_code`.

    Args:
        zip_code: Requested zip ("94105" or "94105-1234").
        now: Evaluation time (defaults to current UTC time).
        rng: Random source (tests pass a seeded instance).
        distance: Ranking distance; default_zip_distance() when omitted
            (haversine if ZIP_COORDINATES_PATH is set, else numeric).
        weights: Tier weights; settings by default.

    Returns:
        The selected offer's content, or None when nothing is available.

    Raises:
        InvalidInput: zip_code does not start with 5 digits.
        UpstreamUnavailable: the offer store could not be read.
    """
    target = normalize_requested_zip(zip_code)
    if target is None:
        raise InvalidInput("invalid zip code", field="zip")

    now = now or datetime.now(timezone.utc)
    offers = await _load_claimable(now)
    ranked = rank_offers(offers, target, distance or default_zip_distance())
    chosen = choose_candidate(ranked, target, rng or _rng, weights or TierWeights.from_settings())

    if chosen is None:
        logger.info(f"No claimable offers for zip {target} ({len(offers)} claimable, none with a zip)")
        return None

    logger.info(
        f"Selected offer {chosen.offer.offer_id} for zip {target} "
        f"(offer zip {chosen.zip_code}, {len(ranked)} candidates)"
    )
    return OfferContent.from_offer(chosen.offer)


async def select_random_offer(
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> OfferContent | None:
    """Pick a uniformly random claimable offer (discovery without a zip)."""
    now = now or datetime.now(timezone.utc)
    offers = await _load_claimable(now)
    if not offers:
        return None
    return OfferContent.from_offer((rng or _rng).choice(offers))


async def get_offer_content(offer_id: str, *, now: datetime | None = None) -> OfferContent:
    """Resolve a direct offer link.

    Raises:
        NotFound: unknown offer id.
        OutOfStock: offer is expired or has no stock left.
    """
    now = now or datetime.now(timezone.utc)
    try:
        offer = await offer_store.get_offer(offer_id)
    except (SQLAlchemyError, OSError) as e:
        raise UpstreamUnavailable("offer store unavailable") from e

    if offer is None:
        raise NotFound("offer not found", offer_id=offer_id)
    if offer.is_expired(now):
        raise OutOfStock("offer expired", offer_id=offer_id, reason="expired")
    if offer.remaining_quantity <= 0:
        raise OutOfStock("offer out of stock", offer_id=offer_id, reason="out_of_stock")
    return OfferContent.from_offer(offer)
