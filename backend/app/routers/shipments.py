"""Shipment router.

Endpoints:
    POST    /api/shipments                          Open a job (job number assigned)
    GET     /api/shipments                          List with filters
    GET     /api/shipments/{shipment_id}            Detail with parties, containers,
                                                    cargo, costings, tracking, totals
    PUT     /api/shipments/{shipment_id}            Update header / status
    DELETE  /api/shipments/{shipment_id}            Hard delete (no financials only)
    GET     /api/shipments/{shipment_id}/delete-check
    GET     /api/shipments/{shipment_id}/invoices   Customer and vendor documents
    POST    /api/shipments/{shipment_id}/status-logs
    DELETE  /api/shipments/status-logs/{log_id}
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser, require_permission
from app.database import get_db
from app.models.enums import ShipmentStatus
from app.models.shipment import Shipment, ShipmentStatusLog
from app.schemas.common import GuardCheckOut, PaginatedResponse
from app.schemas.invoice import InvoiceOut, PurchaseInvoiceOut, ShipmentDocumentsOut
from app.schemas.shipment import (
    ShipmentCreate,
    ShipmentDetail,
    ShipmentSummary,
    ShipmentUpdate,
    StatusLogCreate,
    StatusLogOut,
)
from app.services.common import get_or_404
from app.services.costing import summarize_costings
from app.services.guards import can_delete_shipment
from app.services.invoicing import list_shipment_documents
from app.services.reference_data import ReferenceData, get_reference_data
from app.services.shipments import create_shipment, delete_shipment, update_shipment
from app.utils.activity import log_activity

router = APIRouter()


def _detail(shipment: Shipment) -> ShipmentDetail:
    detail = ShipmentDetail.model_validate(shipment)
    detail.totals = summarize_costings(shipment.costings)
    return detail


# ── POST /api/shipments ──────────────────────────────────────

@router.post("", response_model=ShipmentSummary, status_code=201)
async def open_shipment(
    body: ShipmentCreate,
    db: AsyncSession = Depends(get_db),
    refs: ReferenceData = Depends(get_reference_data),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    shipment = await create_shipment(db, body, refs, user)
    return ShipmentSummary.model_validate(shipment)


# ── GET /api/shipments ───────────────────────────────────────

@router.get("", response_model=PaginatedResponse[ShipmentSummary])
async def list_shipments(
    job_status: ShipmentStatus | None = None,
    search: str | None = None,
    limit: int = Query(50, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("shipment.read")),
):
    """List shipments, newest job first.  ``search`` matches job, HBL or MBL number."""
    base = select(Shipment)
    if job_status:
        base = base.where(Shipment.job_status == job_status)
    if search:
        pattern = f"%{search}%"
        base = base.where(or_(
            Shipment.job_number.ilike(pattern),
            Shipment.hbl_no.ilike(pattern),
            Shipment.mbl_no.ilike(pattern),
        ))

    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(
        base.order_by(Shipment.job_date.desc(), Shipment.job_number.desc())
        .limit(limit).offset(offset)
    )
    return PaginatedResponse(
        items=[ShipmentSummary.model_validate(s) for s in result.scalars().all()],
        total=total or 0,
        limit=limit,
        offset=offset,
    )


# ── GET /api/shipments/{shipment_id} ─────────────────────────

@router.get("/{shipment_id}", response_model=ShipmentDetail)
async def get_shipment(
    shipment_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("shipment.read")),
):
    return _detail(await get_or_404(db, Shipment, shipment_id, "Shipment"))


# ── PUT /api/shipments/{shipment_id} ─────────────────────────

@router.put("/{shipment_id}", response_model=ShipmentDetail)
async def edit_shipment(
    shipment_id: str,
    body: ShipmentUpdate,
    db: AsyncSession = Depends(get_db),
    refs: ReferenceData = Depends(get_reference_data),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    return _detail(await update_shipment(db, shipment_id, body, refs, user))


# ── DELETE /api/shipments/{shipment_id} ──────────────────────

@router.delete("/{shipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_shipment(
    shipment_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.delete")),
):
    await delete_shipment(db, shipment_id, user)


@router.get("/{shipment_id}/delete-check", response_model=GuardCheckOut)
async def shipment_delete_check(
    shipment_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("shipment.read")),
):
    await get_or_404(db, Shipment, shipment_id, "Shipment")
    result = await can_delete_shipment(db, shipment_id)
    return GuardCheckOut(allowed=result.allowed, reason=result.reason, code=result.code)


# ── GET /api/shipments/{shipment_id}/invoices ────────────────

@router.get("/{shipment_id}/invoices", response_model=ShipmentDocumentsOut)
async def shipment_documents(
    shipment_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("financials.read")),
):
    await get_or_404(db, Shipment, shipment_id, "Shipment")
    invoices, purchases = await list_shipment_documents(db, shipment_id)
    return ShipmentDocumentsOut(
        invoices=[InvoiceOut.model_validate(i) for i in invoices],
        purchase_invoices=[PurchaseInvoiceOut.model_validate(p) for p in purchases],
    )


# ── Status logs ──────────────────────────────────────────────

@router.post("/{shipment_id}/status-logs", response_model=StatusLogOut, status_code=201)
async def add_status_log(
    shipment_id: str,
    body: StatusLogCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    shipment = await get_or_404(db, Shipment, shipment_id, "Shipment")
    log = ShipmentStatusLog(shipment_id=shipment_id, created_by=user.id, **body.model_dump())
    db.add(log)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="status_log",
        entity_id=log.id,
        entity_code=shipment.job_number,
        summary=f"{log.event_type.value}: {log.description or ''}".strip(),
    )
    return StatusLogOut.model_validate(log)


@router.delete("/status-logs/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_status_log(
    log_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    log = await get_or_404(db, ShipmentStatusLog, log_id, "Status log")
    await db.delete(log)
    await db.flush()

    await log_activity(
        db, user,
        action="deleted",
        entity_type="status_log",
        entity_id=log_id,
        summary=f"Removed {log.event_type.value} event",
    )
