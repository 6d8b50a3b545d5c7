"""Async client for the visitor flow: find an offer, claim it, redeem it.

The cooldown guard runs before any selection request; while it is active
find_offer() raises CooldownActive without touching the network. A successful
claim writes the cooldown mark.

Structured API errors are mapped back to the domain exceptions in
rewards.services.errors, so callers can show the right message.
"""

import logging
from typing import Any

import httpx

from rewards.client.cooldown import CooldownGuard
from rewards.schemas import ClaimResponse, ClaimView, OfferContent
from rewards.services.errors import ERRORS_BY_KIND, CooldownActive, RewardsError, UpstreamUnavailable

logger = logging.getLogger("uvicorn.error")


class VisitorClient:
    """Client for the rewards API as used by an anonymous visitor."""

    def __init__(
        self,
        base_url: str,
        guard: CooldownGuard,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.guard = guard
        self.timeout = timeout
        self._http_client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client (only if this instance created it)."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def find_offer(self, zip_code: str, *, now: int | None = None) -> OfferContent | None:
        """Ask for an offer near `zip_code`, unless the visitor is cooling down.

        Raises:
            CooldownActive: the visitor claimed less than the window ago.
        """
        status = await self.guard.check(now)
        if status.active:
            raise CooldownActive(remaining_ms=status.remaining_ms)

        payload = await self._request("GET", "/v1/offers/select", params={"zip": zip_code})
        offer = payload.get("offer")
        return OfferContent.model_validate(offer) if offer else None

    async def claim(
        self,
        offer_id: str,
        contact_handle: str,
        delivery_method: str | None = None,
        *,
        now: int | None = None,
    ) -> ClaimResponse:
        body: dict[str, Any] = {"offerId": offer_id, "contactHandle": contact_handle}
        if delivery_method:
            body["deliveryMethod"] = delivery_method

        payload = await self._request("POST", "/v1/claims", json=body)
        result = ClaimResponse.model_validate(payload)
        await self.guard.record_claim(now)
        return result

    async def get_claim(self, claim_id: str) -> ClaimView:
        payload = await self._request("GET", f"/v1/claims/{claim_id}")
        return ClaimView.model_validate(payload)

    async def redeem(self, claim_id: str) -> None:
        await self._request("POST", "/v1/redemptions", json={"claimId": claim_id})

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        client = await self._get_client()
        try:
            resp = await client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"Rewards API request {method} {path} failed: {type(e).__name__}")
            raise UpstreamUnavailable("rewards api unreachable") from e

        if resp.is_success:
            return resp.json()
        raise _error_from_response(resp)


def _error_from_response(resp: httpx.Response) -> RewardsError:
    try:
        error = resp.json().get("error") or {}
    except (ValueError, AttributeError):
        error = {}

    code = error.get("code") if isinstance(error, dict) else None
    detail = error.get("detail") if isinstance(error, dict) else None
    detail = detail if isinstance(detail, dict) else {}

    if code == CooldownActive.error_kind:
        return CooldownActive(remaining_ms=int(detail.pop("remaining_ms", 0) or 0), **detail)

    error_cls = ERRORS_BY_KIND.get(code or "", UpstreamUnavailable)
    detail.setdefault("status_code", resp.status_code)
    return error_cls(f"rewards api error {code or resp.status_code}", **detail)
