"""Tests for one-time redemption and the reward page lookup."""

from datetime import timedelta

import pytest

from conftest import NOW, add_offer
from rewards.services.claims import ClaimCommand, claim_offer
from rewards.services.errors import AlreadyRedeemed, NotFound
from rewards.services.redemption import get_claim_view, redeem_claim
from rewards.stores import offers as offer_store


async def _claim(offer_id: str = "coffee") -> str:
    result = await claim_offer(
        ClaimCommand(offer_id=offer_id, contact_handle="visitor@example.com"),
        now=NOW,
    )
    return result.claim_id


@pytest.mark.asyncio
async def test_redeem_once(db):
    await add_offer("coffee", quantity=2)
    claim_id = await _claim()

    redeemed_at = await redeem_claim(claim_id, now=NOW + timedelta(hours=1))
    assert redeemed_at == NOW + timedelta(hours=1)

    claim = await offer_store.get_claim(claim_id)
    assert claim.state.value == "REDEEMED"
    assert claim.redeemed_at is not None


@pytest.mark.asyncio
async def test_second_redemption_is_rejected(db):
    await add_offer("coffee", quantity=2)
    claim_id = await _claim()

    await redeem_claim(claim_id, now=NOW)
    with pytest.raises(AlreadyRedeemed) as exc_info:
        await redeem_claim(claim_id, now=NOW + timedelta(minutes=5))

    assert exc_info.value.http_status == 409
    assert exc_info.value.detail["claim_id"] == claim_id
    assert exc_info.value.detail["redeemed_at"] is not None

    # State never moves back
    claim = await offer_store.get_claim(claim_id)
    assert claim.state.value == "REDEEMED"


@pytest.mark.asyncio
async def test_redeem_unknown_claim(db):
    with pytest.raises(NotFound):
        await redeem_claim("coffee-1700000000000-1", now=NOW)


@pytest.mark.asyncio
async def test_redemption_does_not_touch_stock(db):
    await add_offer("coffee", quantity=2)
    claim_id = await _claim()
    await redeem_claim(claim_id, now=NOW)

    offer = await offer_store.get_offer("coffee")
    assert offer.remaining_quantity == 1
    assert offer.units_consumed == 1


@pytest.mark.asyncio
async def test_claim_view_carries_offer_content(db):
    await add_offer("coffee", quantity=2, title="Free coffee")
    claim_id = await _claim()

    view = await get_claim_view(claim_id)
    assert view.claim_id == claim_id
    assert view.offer_id == "coffee"
    assert view.state == "CLAIMED"
    assert view.title == "Free coffee"
    assert view.redeemed_at is None

    await redeem_claim(claim_id, now=NOW)
    assert (await get_claim_view(claim_id)).state == "REDEEMED"


@pytest.mark.asyncio
async def test_claim_view_unknown(db):
    with pytest.raises(NotFound):
        await get_claim_view("missing")
