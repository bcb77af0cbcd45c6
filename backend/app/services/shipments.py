"""Shipment and party-registry operations."""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser
from app.middleware.exceptions import BusinessLogicError
from app.models.customer import Customer
from app.models.party import ShipmentParty
from app.models.shipment import Shipment
from app.schemas.party import PartyCreate
from app.schemas.shipment import ShipmentCreate, ShipmentUpdate
from app.services.common import get_or_404, lock_shipment
from app.services.guards import can_delete_party, can_delete_shipment
from app.services.reference_data import ReferenceData
from app.utils.activity import log_activity
from app.utils.numbering import next_number

logger = logging.getLogger(__name__)


async def _validate_ports(refs: ReferenceData, body) -> None:
    await refs.require_id("ports", "port_of_loading_id", body.port_of_loading_id)
    await refs.require_id("ports", "port_of_discharge_id", body.port_of_discharge_id)


# ── Shipment ─────────────────────────────────────────────────

async def create_shipment(
    db: AsyncSession, body: ShipmentCreate, refs: ReferenceData, user: CurrentUser,
) -> Shipment:
    await _validate_ports(refs, body)

    job_date = body.job_date or date.today()
    data = body.model_dump(exclude={"job_date"})
    shipment = Shipment(
        job_number=await next_number(db, "job", user.office_id, job_date),
        office_id=user.office_id,
        job_date=job_date,
        created_by=user.id,
        **data,
    )
    db.add(shipment)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="shipment",
        entity_id=shipment.id,
        entity_code=shipment.job_number,
        summary=f"Opened {shipment.mode.value} {shipment.direction.value} job {shipment.job_number}",
    )
    return shipment


async def update_shipment(
    db: AsyncSession, shipment_id: str, body: ShipmentUpdate, refs: ReferenceData, user: CurrentUser,
) -> Shipment:
    shipment = await lock_shipment(db, shipment_id)
    await _validate_ports(refs, body)

    updates = body.model_dump(exclude_unset=True)
    for field_name, value in updates.items():
        setattr(shipment, field_name, value)
    await db.flush()

    await log_activity(
        db, user,
        action="updated",
        entity_type="shipment",
        entity_id=shipment.id,
        entity_code=shipment.job_number,
        summary=f"Updated {', '.join(sorted(updates)) or 'nothing'}",
    )
    return shipment


async def delete_shipment(db: AsyncSession, shipment_id: str, user: CurrentUser) -> None:
    """Hard delete, only for jobs that never carried any financial record."""
    shipment = await lock_shipment(db, shipment_id)
    (await can_delete_shipment(db, shipment_id)).enforce()

    job_number = shipment.job_number
    await db.delete(shipment)
    await db.flush()

    await log_activity(
        db, user,
        action="deleted",
        entity_type="shipment",
        entity_id=shipment_id,
        entity_code=job_number,
        summary=f"Deleted job {job_number}",
    )


# ── Parties ──────────────────────────────────────────────────

async def attach_party(
    db: AsyncSession, shipment_id: str, body: PartyCreate, user: CurrentUser,
) -> ShipmentParty:
    shipment = await lock_shipment(db, shipment_id)
    customer = await get_or_404(db, Customer, body.customer_id, "Customer")

    existing = await db.execute(
        select(ShipmentParty.id).where(
            ShipmentParty.shipment_id == shipment_id,
            ShipmentParty.customer_id == body.customer_id,
            ShipmentParty.party_type == body.party_type,
        )
    )
    if existing.first() is not None:
        raise BusinessLogicError(
            f"{customer.name} is already attached as {body.party_type.value}",
            error_code="DUPLICATE_PARTY",
            details={"customer_id": body.customer_id, "party_type": body.party_type.value},
        )

    party = ShipmentParty(
        shipment_id=shipment_id,
        customer_id=customer.id,
        party_type=body.party_type,
        master_type=body.master_type or customer.master_type,
        customer_name=customer.name,
        email=body.email or customer.email,
        phone=body.phone or customer.phone,
        mobile=body.mobile,
    )
    db.add(party)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="party",
        entity_id=party.id,
        entity_code=shipment.job_number,
        summary=f"Attached {customer.name} as {body.party_type.value}",
    )
    return party


async def delete_party(db: AsyncSession, party_id: str, user: CurrentUser) -> None:
    party = await get_or_404(db, ShipmentParty, party_id, "Party")
    shipment = await lock_shipment(db, party.shipment_id)

    (await can_delete_party(db, party)).enforce()

    await db.delete(party)
    await db.flush()

    await log_activity(
        db, user,
        action="deleted",
        entity_type="party",
        entity_id=party_id,
        entity_code=shipment.job_number,
        summary=f"Detached {party.customer_name} ({party.party_type.value})",
    )
