"""Small query helpers shared by the service layer."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import ResourceNotFoundError
from app.models.shipment import Shipment


async def get_or_404(db: AsyncSession, model, entity_id: str, resource: str):
    """Load a row by primary key or raise RESOURCE_NOT_FOUND."""
    result = await db.execute(select(model).where(model.id == entity_id))
    row = result.scalar_one_or_none()
    if row is None:
        raise ResourceNotFoundError(resource, entity_id)
    return row


async def lock_shipment(db: AsyncSession, shipment_id: str) -> Shipment:
    """SELECT ... FOR UPDATE on the shipment row.

    Every costing or billing mutation takes this lock first, so flag checks
    and flag writes for one shipment are serialised until commit.
    """
    result = await db.execute(
        select(Shipment).where(Shipment.id == shipment_id).with_for_update()
    )
    shipment = result.scalar_one_or_none()
    if shipment is None:
        raise ResourceNotFoundError("Shipment", shipment_id)
    return shipment
