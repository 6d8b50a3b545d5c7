"""Reconciliation sweep: consumed stock units vs claim records.

Every successful decrement bumps offers.units_consumed in the same statement,
so for each offer:

    units_consumed == number of claim rows      (healthy)
    units_consumed  > number of claim rows      (orphaned units)

Orphaned units come from claims whose record write failed after the
decrement. The sweep reports and logs them; it never changes stock or claims.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rewards.stores import offers as offer_store

logger = logging.getLogger("uvicorn.error")


@dataclass
class OrphanReport:
    offer_id: str
    initial_quantity: int
    remaining_quantity: int
    units_consumed: int
    claims_recorded: int

    @property
    def orphaned_units(self) -> int:
        return self.units_consumed - self.claims_recorded


@dataclass
class ReconcileStats:
    scanned: int = 0
    healthy: int = 0
    with_orphans: int = 0
    orphaned_units: int = 0
    inconsistent_totals: int = 0


async def find_orphaned_units() -> tuple[list[OrphanReport], ReconcileStats]:
    """Scan offers that handed out stock and compare with recorded claims."""
    offers = await offer_store.list_consumed_offers()
    counts = await offer_store.claim_counts_by_offer()

    stats = ReconcileStats()
    reports: list[OrphanReport] = []
    for offer in offers:
        stats.scanned += 1
        report = OrphanReport(
            offer_id=offer.offer_id,
            initial_quantity=offer.initial_quantity,
            remaining_quantity=offer.remaining_quantity,
            units_consumed=offer.units_consumed,
            claims_recorded=counts.get(offer.offer_id, 0),
        )

        if offer.initial_quantity != offer.remaining_quantity + offer.units_consumed:
            stats.inconsistent_totals += 1
            logger.error(
                f"Offer {offer.offer_id} stock totals disagree: initial={offer.initial_quantity} "
                f"remaining={offer.remaining_quantity} consumed={offer.units_consumed}"
            )

        if report.orphaned_units > 0:
            stats.with_orphans += 1
            stats.orphaned_units += report.orphaned_units
            reports.append(report)
            logger.error(
                f"RECONCILIATION: offer {offer.offer_id} has {report.orphaned_units} consumed "
                f"unit(s) without a claim record"
            )
        else:
            stats.healthy += 1

    logger.info(
        f"Reconciliation scanned {stats.scanned} offers: {stats.with_orphans} with orphans, "
        f"{stats.orphaned_units} orphaned units"
    )
    return reports, stats
