"""Container & cargo router (mounted under /api/shipments).

Containers and cargo lines are descriptive only; deletes are never
guarded.

Endpoints:
    POST    /api/shipments/{shipment_id}/containers
    PUT     /api/shipments/containers/{container_id}
    DELETE  /api/shipments/containers/{container_id}
    POST    /api/shipments/{shipment_id}/cargos
    PUT     /api/shipments/cargos/{cargo_id}
    DELETE  /api/shipments/cargos/{cargo_id}
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser, require_permission
from app.database import get_db
from app.models.container import ShipmentCargo, ShipmentContainer
from app.models.shipment import Shipment
from app.schemas.container import (
    CargoCreate,
    CargoOut,
    CargoUpdate,
    ContainerCreate,
    ContainerOut,
    ContainerUpdate,
)
from app.services.common import get_or_404
from app.services.reference_data import ReferenceData, get_reference_data
from app.utils.activity import log_activity

router = APIRouter()


async def _validate_types(refs: ReferenceData, body) -> None:
    await refs.require_id("container-types", "container_type_id", body.container_type_id)
    await refs.require_id("package-types", "package_type_id", body.package_type_id)


# ── Containers ───────────────────────────────────────────────

@router.post("/{shipment_id}/containers", response_model=ContainerOut, status_code=201)
async def add_container(
    shipment_id: str,
    body: ContainerCreate,
    db: AsyncSession = Depends(get_db),
    refs: ReferenceData = Depends(get_reference_data),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    shipment = await get_or_404(db, Shipment, shipment_id, "Shipment")
    await _validate_types(refs, body)

    container = ShipmentContainer(shipment_id=shipment_id, **body.model_dump())
    container.container_number = container.container_number.upper()
    db.add(container)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="container",
        entity_id=container.id,
        entity_code=shipment.job_number,
        summary=f"Added container {container.container_number}",
    )
    return ContainerOut.model_validate(container)


@router.put("/containers/{container_id}", response_model=ContainerOut)
async def update_container(
    container_id: str,
    body: ContainerUpdate,
    db: AsyncSession = Depends(get_db),
    refs: ReferenceData = Depends(get_reference_data),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    container = await get_or_404(db, ShipmentContainer, container_id, "Container")
    await _validate_types(refs, body)

    updates = body.model_dump(exclude_unset=True)
    for field_name, value in updates.items():
        setattr(container, field_name, value)
    if container.container_number:
        container.container_number = container.container_number.upper()
    await db.flush()

    await log_activity(
        db, user,
        action="updated",
        entity_type="container",
        entity_id=container.id,
        entity_code=container.container_number,
        summary=f"Updated {', '.join(sorted(updates)) or 'nothing'}",
    )
    return ContainerOut.model_validate(container)


@router.delete("/containers/{container_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_container(
    container_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    container = await get_or_404(db, ShipmentContainer, container_id, "Container")
    await db.delete(container)
    await db.flush()

    await log_activity(
        db, user,
        action="deleted",
        entity_type="container",
        entity_id=container_id,
        entity_code=container.container_number,
    )


# ── Cargo ────────────────────────────────────────────────────

@router.post("/{shipment_id}/cargos", response_model=CargoOut, status_code=201)
async def add_cargo(
    shipment_id: str,
    body: CargoCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    shipment = await get_or_404(db, Shipment, shipment_id, "Shipment")
    cargo = ShipmentCargo(shipment_id=shipment_id, **body.model_dump())
    db.add(cargo)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="cargo",
        entity_id=cargo.id,
        entity_code=shipment.job_number,
        summary=f"Added cargo line: {cargo.quantity} {cargo.load_type or ''}".strip(),
    )
    return CargoOut.model_validate(cargo)


@router.put("/cargos/{cargo_id}", response_model=CargoOut)
async def update_cargo(
    cargo_id: str,
    body: CargoUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    cargo = await get_or_404(db, ShipmentCargo, cargo_id, "Cargo")
    for field_name, value in body.model_dump(exclude_unset=True).items():
        setattr(cargo, field_name, value)
    await db.flush()

    await log_activity(
        db, user,
        action="updated",
        entity_type="cargo",
        entity_id=cargo.id,
    )
    return CargoOut.model_validate(cargo)


@router.delete("/cargos/{cargo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cargo(
    cargo_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    cargo = await get_or_404(db, ShipmentCargo, cargo_id, "Cargo")
    await db.delete(cargo)
    await db.flush()

    await log_activity(
        db, user,
        action="deleted",
        entity_type="cargo",
        entity_id=cargo_id,
    )
