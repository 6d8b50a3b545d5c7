#!/usr/bin/env python3
"""Seed database with sample offers.

Creates:
- A handful of neighborhood offers around San Francisco and Oakland
- One sold-out and one expired offer (useful for trying the error paths)

Seed script is idempotent: offers are keyed by offer_id and skipped if present.

Usage:
    cd services/api
    DATABASE_URL='sqlite:///./rewards.db' python -m scripts.seed
    python -m scripts.seed --create-tables
"""

import argparse
import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import select

from rewards.models import Offer
from rewards.stores.postgres import close_db, create_tables, get_session, init_db

load_dotenv()

# ============================================================
# Offer Definitions
# ============================================================
# expires_in_days < 0 seeds an already expired offer

OFFERS = [
    {
        "offer_id": "blue-door-coffee",
        "title": "Free drip coffee",
        "subtitle": "With any pastry, weekdays before 11am",
        "location_text": "101 Market St, San Francisco, CA 94105",
        "quantity": 50,
        "expires_in_days": 30,
        "business_id": "blue-door",
    },
    {
        "offer_id": "mission-tacos",
        "title": "2-for-1 tacos",
        "subtitle": "Tuesdays only",
        "location_text": "2400 Mission St, San Francisco, CA 94110",
        "quantity": 25,
        "expires_in_days": 14,
        "business_id": "mission-tacos",
    },
    {
        "offer_id": "soma-bikes",
        "title": "Free tune-up check",
        "subtitle": "Bring your bike in, no appointment needed",
        "location_text": "350 Brannan St, San Francisco, CA 94107",
        "quantity": 10,
        "expires_in_days": 60,
        "business_id": "soma-bikes",
    },
    {
        "offer_id": "lake-merritt-books",
        "title": "15% off any used book",
        "subtitle": None,
        "location_text": "3300 Lakeshore Ave, Oakland, CA 94610",
        "quantity": 40,
        "expires_in_days": 45,
        "business_id": "lake-merritt-books",
    },
    {
        "offer_id": "sold-out-bakery",
        "title": "Free croissant",
        "subtitle": "Already claimed by the neighborhood",
        "location_text": "200 Folsom St, San Francisco, CA 94105",
        "quantity": 0,
        "expires_in_days": 7,
        "business_id": "folsom-bakery",
    },
    {
        "offer_id": "last-month-yoga",
        "title": "First class free",
        "subtitle": "Expired promotion",
        "location_text": "88 Townsend St, San Francisco, CA 94107",
        "quantity": 20,
        "expires_in_days": -3,
        "business_id": "townsend-yoga",
    },
]


def _maps_url(location_text: str) -> str:
    return "https://www.google.com/maps/search/?api=1&query=" + location_text.replace(" ", "+")


async def seed_offers() -> tuple[int, int]:
    """Insert missing sample offers. Returns (created, skipped)."""
    now = datetime.now(timezone.utc)
    created = skipped = 0

    async with get_session() as session:
        for offer_def in OFFERS:
            result = await session.execute(select(Offer).where(Offer.offer_id == offer_def["offer_id"]))
            if result.scalar_one_or_none():
                print(f"  ⏭️  {offer_def['offer_id']} (exists)")
                skipped += 1
                continue

            session.add(
                Offer(
                    offer_id=offer_def["offer_id"],
                    initial_quantity=offer_def["quantity"],
                    remaining_quantity=offer_def["quantity"],
                    units_consumed=0,
                    expires_at=now + timedelta(days=offer_def["expires_in_days"]),
                    location_text=offer_def["location_text"],
                    title=offer_def["title"],
                    subtitle=offer_def["subtitle"],
                    logo_key=f"logos/{offer_def['business_id']}.png",
                    address_url=_maps_url(offer_def["location_text"]),
                    business_id=offer_def["business_id"],
                )
            )
            created += 1
            print(f"  ✅ {offer_def['offer_id']} ({offer_def['quantity']} units)")

    return created, skipped


async def main() -> None:
    parser = argparse.ArgumentParser(description="Seed sample offers")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables before seeding (local SQLite runs without Alembic)",
    )
    args = parser.parse_args()

    await init_db()
    try:
        if args.create_tables:
            await create_tables()
        print("🌱 Seeding offers...")
        created, skipped = await seed_offers()
        print(f"\n✅ Done: {created} created, {skipped} skipped")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
