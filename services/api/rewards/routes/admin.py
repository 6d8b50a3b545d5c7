"""Admin endpoints for operations.

GET /v1/admin/reconciliation - consumed stock units without claim records

When ADMIN_API_KEY is set, requests must carry it in X-Admin-Key.
"""

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field

from rewards.services.reconciliation import find_orphaned_units
from rewards.settings import get_settings

router = APIRouter()


async def require_admin_key(x_admin_key: str | None = Header(default=None)) -> None:
    expected = get_settings().admin_api_key
    if expected and x_admin_key != expected:
        raise HTTPException(status_code=401, detail="unauthorized")


class OrphanItem(BaseModel):
    offer_id: str = Field(alias="offerId")
    initial_quantity: int = Field(alias="initialQuantity")
    remaining_quantity: int = Field(alias="remainingQuantity")
    units_consumed: int = Field(alias="unitsConsumed")
    claims_recorded: int = Field(alias="claimsRecorded")
    orphaned_units: int = Field(alias="orphanedUnits")

    model_config = {"populate_by_name": True}


class ReconciliationResponse(BaseModel):
    scanned: int
    orphaned_units: int = Field(alias="orphanedUnits")
    inconsistent_totals: int = Field(alias="inconsistentTotals")
    offers: list[OrphanItem]

    model_config = {"populate_by_name": True}


@router.get(
    "/reconciliation",
    response_model=ReconciliationResponse,
    dependencies=[Depends(require_admin_key)],
)
async def reconciliation_report() -> ReconciliationResponse:
    """Report offers whose consumed units outnumber their claim records."""
    reports, stats = await find_orphaned_units()
    return ReconciliationResponse(
        scanned=stats.scanned,
        orphaned_units=stats.orphaned_units,
        inconsistent_totals=stats.inconsistent_totals,
        offers=[
            OrphanItem(
                offer_id=r.offer_id,
                initial_quantity=r.initial_quantity,
                remaining_quantity=r.remaining_quantity,
                units_consumed=r.units_consumed,
                claims_recorded=r.claims_recorded,
                orphaned_units=r.orphaned_units,
            )
            for r in reports
        ],
    )
