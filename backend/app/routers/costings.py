"""Costing router (mounted under /api/shipments).

Endpoints:
    GET     /api/shipments/{shipment_id}/costings          Lines + LCY totals
    POST    /api/shipments/{shipment_id}/costings          Add line (amounts recomputed)
    PUT     /api/shipments/costings/{costing_id}           Replace inputs
    DELETE  /api/shipments/costings/{costing_id}           Delete (guarded)
    GET     /api/shipments/costings/{costing_id}/delete-check
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser, require_permission
from app.database import get_db
from app.models.costing import ShipmentCosting
from app.models.shipment import Shipment
from app.schemas.common import GuardCheckOut
from app.schemas.costing import CostingInput, CostingOut, ShipmentCostingsOut
from app.services.common import get_or_404
from app.services.costing import add_costing, delete_costing, summarize_costings, update_costing
from app.services.guards import can_delete_costing
from app.services.reference_data import ReferenceData, get_reference_data

router = APIRouter()


@router.get("/{shipment_id}/costings", response_model=ShipmentCostingsOut)
async def list_costings(
    shipment_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("financials.read")),
):
    await get_or_404(db, Shipment, shipment_id, "Shipment")
    result = await db.execute(
        select(ShipmentCosting)
        .where(ShipmentCosting.shipment_id == shipment_id)
        .order_by(ShipmentCosting.created_at)
    )
    costings = result.scalars().all()
    return ShipmentCostingsOut(
        items=[CostingOut.model_validate(c) for c in costings],
        totals=summarize_costings(costings),
    )


@router.post("/{shipment_id}/costings", response_model=CostingOut, status_code=201)
async def create_costing(
    shipment_id: str,
    body: CostingInput,
    db: AsyncSession = Depends(get_db),
    refs: ReferenceData = Depends(get_reference_data),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    return CostingOut.model_validate(await add_costing(db, shipment_id, body, refs, user))


@router.put("/costings/{costing_id}", response_model=CostingOut)
async def edit_costing(
    costing_id: str,
    body: CostingInput,
    db: AsyncSession = Depends(get_db),
    refs: ReferenceData = Depends(get_reference_data),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    return CostingOut.model_validate(await update_costing(db, costing_id, body, refs, user))


@router.delete("/costings/{costing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_costing(
    costing_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.delete")),
):
    await delete_costing(db, costing_id, user)


@router.get("/costings/{costing_id}/delete-check", response_model=GuardCheckOut)
async def costing_delete_check(
    costing_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("financials.read")),
):
    costing = await get_or_404(db, ShipmentCosting, costing_id, "Costing")
    result = can_delete_costing(costing)
    return GuardCheckOut(allowed=result.allowed, reason=result.reason, code=result.code)
