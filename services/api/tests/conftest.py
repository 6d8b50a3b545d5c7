from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from rewards.main import app
from rewards.models import Offer
from rewards.settings import get_settings
from rewards.stores.postgres import close_db, create_tables, drop_tables, get_session, init_db
from rewards.stores.redis import set_redis

NOW = datetime.now(timezone.utc).replace(microsecond=0)


@pytest_asyncio.fixture
async def db(tmp_path):
    """Fresh SQLite database per test."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'rewards.db'}")
    await create_tables()
    try:
        yield
    finally:
        await drop_tables()
        await close_db()


@pytest_asyncio.fixture
async def client(db):
    """API client against the app with the test database."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Settings come from the environment; keep tests independent of it."""
    for var in (
        "CLAIM_THROTTLE_SECONDS",
        "ADMIN_API_KEY",
        "SELECTION_EXACT_WEIGHT",
        "SELECTION_SECOND_WEIGHT",
        "ZIP_COORDINATES_PATH",
    ):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    set_redis(None)
    yield
    get_settings.cache_clear()
    set_redis(None)


async def add_offer(
    offer_id: str,
    *,
    quantity: int = 5,
    location_text: str = "1 Market St, San Francisco, CA 94105",
    expires_at: datetime | None = None,
    title: str | None = None,
) -> Offer:
    offer = Offer(
        offer_id=offer_id,
        initial_quantity=quantity,
        remaining_quantity=quantity,
        units_consumed=0,
        expires_at=expires_at or NOW + timedelta(days=30),
        location_text=location_text,
        title=title or f"Reward {offer_id}",
        subtitle="Free coffee with any pastry",
        logo_key=f"logos/{offer_id}.png",
        address_url="https://www.google.com/maps/search/?api=1&query=1+Market+St",
        business_id="biz-1",
    )
    async with get_session() as session:
        session.add(offer)
    return offer
