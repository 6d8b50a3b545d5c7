"""Tests for the reconciliation sweep (consumed units vs claim records)."""

import pytest
from sqlalchemy import update

from conftest import NOW, add_offer
from rewards.models import Offer
from rewards.services.claims import ClaimCommand, claim_offer
from rewards.services.reconciliation import find_orphaned_units
from rewards.stores import offers as offer_store
from rewards.stores.postgres import get_session


@pytest.mark.asyncio
async def test_healthy_offers_have_no_orphans(db):
    await add_offer("coffee", quantity=3)
    await add_offer("bagel", quantity=3)
    await add_offer("untouched", quantity=3)
    for offer_id in ("coffee", "coffee", "bagel"):
        await claim_offer(ClaimCommand(offer_id=offer_id, contact_handle="v@example.com"), now=NOW)

    reports, stats = await find_orphaned_units()

    assert reports == []
    assert stats.scanned == 2
    assert stats.healthy == 2
    assert stats.orphaned_units == 0
    assert stats.inconsistent_totals == 0


@pytest.mark.asyncio
async def test_decrement_without_claim_is_reported(db, caplog):
    await add_offer("coffee", quantity=3)
    await claim_offer(ClaimCommand(offer_id="coffee", contact_handle="v@example.com"), now=NOW)
    # A unit taken with no claim written, as after a failed record phase
    await offer_store.decrement_if_available("coffee", NOW)

    reports, stats = await find_orphaned_units()

    assert stats.with_orphans == 1
    assert stats.orphaned_units == 1
    (report,) = reports
    assert report.offer_id == "coffee"
    assert report.units_consumed == 2
    assert report.claims_recorded == 1
    assert report.remaining_quantity == 1
    assert "RECONCILIATION" in caplog.text


@pytest.mark.asyncio
async def test_inconsistent_totals_are_counted(db):
    await add_offer("coffee", quantity=3)
    await claim_offer(ClaimCommand(offer_id="coffee", contact_handle="v@example.com"), now=NOW)
    async with get_session() as session:
        await session.execute(update(Offer).where(Offer.offer_id == "coffee").values(initial_quantity=10))

    _, stats = await find_orphaned_units()
    assert stats.inconsistent_totals == 1
    assert stats.orphaned_units == 0


@pytest.mark.asyncio
async def test_sweep_is_read_only(db):
    await add_offer("coffee", quantity=3)
    await offer_store.decrement_if_available("coffee", NOW)

    await find_orphaned_units()
    await find_orphaned_units()

    offer = await offer_store.get_offer("coffee")
    assert offer.remaining_quantity == 2
    assert offer.units_consumed == 1
    assert await offer_store.claim_counts_by_offer() == {}
