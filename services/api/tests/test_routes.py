"""API tests: discovery, claim, redemption and admin endpoints over HTTP."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from conftest import add_offer
from rewards.schemas import ErrorResponse


def _error(response) -> dict:
    return ErrorResponse.model_validate(response.json()).error.model_dump()


# ============================================================
# Discovery
# ============================================================


@pytest.mark.asyncio
async def test_select_offer(client: AsyncClient):
    await add_offer("coffee", location_text="1 Market St, San Francisco, CA 94105", title="Free coffee")

    response = await client.get("/v1/offers/select", params={"zip": "94105"})

    assert response.status_code == 200
    offer = response.json()["offer"]
    assert offer["offerId"] == "coffee"
    assert offer["title"] == "Free coffee"
    assert offer["logoKey"] == "logos/coffee.png"
    assert offer["locationText"] == "1 Market St, San Francisco, CA 94105"
    assert offer["remainingQuantity"] == 5
    assert "expiresAt" in offer


@pytest.mark.asyncio
async def test_select_offer_empty(client: AsyncClient):
    response = await client.get("/v1/offers/select", params={"zip": "94105"})
    assert response.status_code == 200
    assert response.json() == {"offer": None, "message": "No offers are available right now."}


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"zip": "abcde"}, {"zip": "941"}, {}])
async def test_select_offer_bad_zip(client: AsyncClient, params):
    response = await client.get("/v1/offers/select", params=params)
    assert response.status_code == 400
    assert _error(response)["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_random_offer(client: AsyncClient):
    await add_offer("coffee")
    response = await client.get("/v1/offers/random")
    assert response.status_code == 200
    assert response.json()["offer"]["offerId"] == "coffee"


@pytest.mark.asyncio
async def test_direct_link(client: AsyncClient):
    await add_offer("coffee")
    await add_offer("gone", quantity=0)

    response = await client.get("/v1/offers/coffee")
    assert response.status_code == 200
    assert response.json()["offerId"] == "coffee"

    response = await client.get("/v1/offers/gone")
    assert response.status_code == 409
    error = _error(response)
    assert error["code"] == "OUT_OF_STOCK"
    assert error["message"] == "This offer is no longer available."

    response = await client.get("/v1/offers/missing")
    assert response.status_code == 404
    assert _error(response)["code"] == "NOT_FOUND"


# ============================================================
# Claims
# ============================================================


@pytest.mark.asyncio
async def test_claim_offer(client: AsyncClient):
    await add_offer("coffee", quantity=2)

    response = await client.post(
        "/v1/claims",
        json={"offerId": "coffee", "contactHandle": "+14155550100", "deliveryMethod": "sms"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["claimId"].startswith("coffee-")
    assert data["offer"]["remainingQuantity"] == 1

    response = await client.get(f"/v1/claims/{data['claimId']}")
    assert response.status_code == 200
    view = response.json()
    assert view["state"] == "CLAIMED"
    assert view["offerId"] == "coffee"
    assert view["redeemedAt"] is None


@pytest.mark.asyncio
async def test_claim_until_sold_out(client: AsyncClient):
    await add_offer("coffee", quantity=1)
    body = {"offerId": "coffee", "contactHandle": "a@example.com"}

    assert (await client.post("/v1/claims", json=body)).status_code == 201

    response = await client.post("/v1/claims", json=body)
    assert response.status_code == 409
    assert _error(response)["code"] == "OUT_OF_STOCK"

    # Sold-out offers are no longer selected
    response = await client.get("/v1/offers/select", params={"zip": "94105"})
    assert response.json()["offer"] is None


@pytest.mark.asyncio
async def test_claim_expired_offer(client: AsyncClient):
    await add_offer("old", expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
    response = await client.post("/v1/claims", json={"offerId": "old", "contactHandle": "a@example.com"})
    assert response.status_code == 409
    error = _error(response)
    assert error["code"] == "OUT_OF_STOCK"
    assert error["detail"]["reason"] == "expired"


@pytest.mark.asyncio
async def test_claim_missing_contact(client: AsyncClient):
    await add_offer("coffee")
    response = await client.post("/v1/claims", json={"offerId": "coffee"})
    assert response.status_code == 400
    error = _error(response)
    assert error["code"] == "INVALID_INPUT"
    assert error["message"] == "Some required information is missing or invalid."


@pytest.mark.asyncio
async def test_claim_unknown_offer(client: AsyncClient):
    response = await client.post("/v1/claims", json={"offerId": "nope", "contactHandle": "a@example.com"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_claim_rejects_unknown_delivery_method(client: AsyncClient):
    await add_offer("coffee")
    response = await client.post(
        "/v1/claims",
        json={"offerId": "coffee", "contactHandle": "a@example.com", "deliveryMethod": "fax"},
    )
    assert response.status_code == 400
    assert "body.deliveryMethod" in _error(response)["detail"]["fields"]


# ============================================================
# Redemption
# ============================================================


@pytest.mark.asyncio
async def test_redeem_only_once(client: AsyncClient):
    await add_offer("coffee")
    claim = await client.post("/v1/claims", json={"offerId": "coffee", "contactHandle": "a@example.com"})
    claim_id = claim.json()["claimId"]

    response = await client.post("/v1/redemptions", json={"claimId": claim_id})
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["claimId"] == claim_id
    assert data["redeemedAt"]

    response = await client.post("/v1/redemptions", json={"claimId": claim_id})
    assert response.status_code == 409
    error = _error(response)
    assert error["code"] == "ALREADY_REDEEMED"
    assert error["message"] == "This reward has already been used and cannot be used again."

    view = (await client.get(f"/v1/claims/{claim_id}")).json()
    assert view["state"] == "REDEEMED"
    assert view["redeemedAt"] is not None


@pytest.mark.asyncio
async def test_redeem_unknown_claim(client: AsyncClient):
    response = await client.post("/v1/redemptions", json={"claimId": "nope-1-1"})
    assert response.status_code == 404
    assert _error(response)["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_claim_lookup_unknown(client: AsyncClient):
    response = await client.get("/v1/claims/nope-1-1")
    assert response.status_code == 404


# ============================================================
# Admin
# ============================================================


@pytest.mark.asyncio
async def test_reconciliation_report(client: AsyncClient):
    from rewards.stores import offers as offer_store

    await add_offer("coffee", quantity=3)
    await client.post("/v1/claims", json={"offerId": "coffee", "contactHandle": "a@example.com"})
    await offer_store.decrement_if_available("coffee", datetime.now(timezone.utc))

    response = await client.get("/v1/admin/reconciliation")

    assert response.status_code == 200
    data = response.json()
    assert data["scanned"] == 1
    assert data["orphanedUnits"] == 1
    assert data["inconsistentTotals"] == 0
    assert data["offers"] == [
        {
            "offerId": "coffee",
            "initialQuantity": 3,
            "remainingQuantity": 1,
            "unitsConsumed": 2,
            "claimsRecorded": 1,
            "orphanedUnits": 1,
        }
    ]


@pytest.mark.asyncio
async def test_reconciliation_requires_admin_key(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    from rewards.settings import get_settings

    monkeypatch.setenv("ADMIN_API_KEY", "s3cret")
    get_settings.cache_clear()

    assert (await client.get("/v1/admin/reconciliation")).status_code == 401
    response = await client.get("/v1/admin/reconciliation", headers={"X-Admin-Key": "wrong"})
    assert response.status_code == 401

    response = await client.get("/v1/admin/reconciliation", headers={"X-Admin-Key": "s3cret"})
    assert response.status_code == 200
    assert response.json()["offers"] == []
