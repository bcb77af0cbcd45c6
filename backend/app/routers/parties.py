"""Shipment party router (mounted under /api/shipments).

Endpoints:
    POST    /api/shipments/{shipment_id}/parties            Attach customer under a category
    DELETE  /api/shipments/parties/{party_id}               Detach (guarded)
    GET     /api/shipments/parties/{party_id}/delete-check  Guard result, never an error
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser, require_permission
from app.database import get_db
from app.models.party import ShipmentParty
from app.schemas.common import GuardCheckOut
from app.schemas.party import PartyCreate, PartyOut
from app.services.common import get_or_404
from app.services.guards import can_delete_party
from app.services.shipments import attach_party, delete_party

router = APIRouter()


@router.post("/{shipment_id}/parties", response_model=PartyOut, status_code=201)
async def add_party(
    shipment_id: str,
    body: PartyCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    return PartyOut.model_validate(await attach_party(db, shipment_id, body, user))


@router.delete("/parties/{party_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_party(
    party_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.delete")),
):
    await delete_party(db, party_id, user)


@router.get("/parties/{party_id}/delete-check", response_model=GuardCheckOut)
async def party_delete_check(
    party_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("shipment.read")),
):
    party = await get_or_404(db, ShipmentParty, party_id, "Party")
    result = await can_delete_party(db, party)
    return GuardCheckOut(allowed=result.allowed, reason=result.reason, code=result.code)
