"""Invoice router (customer-facing documents).

Endpoints:
    POST    /api/invoices                           Generate from sale-side costing lines
    GET     /api/invoices                           List with filters
    GET     /api/invoices/{invoice_id}              Detail with line snapshot
    PUT     /api/invoices/{invoice_id}              Re-select costing lines
    DELETE  /api/invoices/{invoice_id}              Delete (unpaid only), un-flags lines
    GET     /api/invoices/{invoice_id}/delete-check
    POST    /api/invoices/{invoice_id}/receipts     Apply a receipt
    POST    /api/invoices/{invoice_id}/close        Manual close
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser, require_permission
from app.database import get_db
from app.models.enums import PaymentStatus
from app.models.invoice import Invoice
from app.schemas.common import GuardCheckOut, PaginatedResponse
from app.schemas.invoice import (
    DocumentUpdate,
    InvoiceCreate,
    InvoiceOut,
    InvoicePaymentResult,
    PaymentCreate,
    ReceiptOut,
)
from app.services.common import get_or_404
from app.services.guards import can_delete_invoice
from app.services.invoicing import (
    INVOICE,
    apply_payment,
    close_document,
    delete_document,
    generate_document,
    update_document,
)

router = APIRouter()


# ── POST /api/invoices ───────────────────────────────────────

@router.post("", response_model=InvoiceOut, status_code=201)
async def generate_invoice(
    body: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    invoice = await generate_document(
        db, INVOICE, user,
        shipment_id=body.shipment_id,
        party_id=body.customer_id,
        costing_ids=body.costing_ids,
        invoice_date=body.invoice_date,
        due_date=body.due_date,
        remarks=body.remarks,
    )
    return InvoiceOut.model_validate(invoice)


# ── GET /api/invoices ────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[InvoiceOut])
async def list_invoices(
    customer_id: str | None = None,
    shipment_id: str | None = None,
    payment_status: PaymentStatus | None = None,
    limit: int = Query(50, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("financials.read")),
):
    """``payment_status`` filters on the stored status (no overdue overlay)."""
    base = select(Invoice)
    if customer_id:
        base = base.where(Invoice.customer_id == customer_id)
    if shipment_id:
        base = base.where(Invoice.shipment_id == shipment_id)
    if payment_status:
        base = base.where(Invoice.payment_status == payment_status)

    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(
        base.order_by(Invoice.invoice_date.desc(), Invoice.invoice_number.desc())
        .limit(limit).offset(offset)
    )
    return PaginatedResponse(
        items=[InvoiceOut.model_validate(i) for i in result.scalars().all()],
        total=total or 0,
        limit=limit,
        offset=offset,
    )


# ── GET /api/invoices/{invoice_id} ───────────────────────────

@router.get("/{invoice_id}", response_model=InvoiceOut)
async def get_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("financials.read")),
):
    return InvoiceOut.model_validate(await get_or_404(db, Invoice, invoice_id, "Invoice"))


# ── PUT /api/invoices/{invoice_id} ───────────────────────────

@router.put("/{invoice_id}", response_model=InvoiceOut)
async def edit_invoice(
    invoice_id: str,
    body: DocumentUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    invoice = await update_document(
        db, INVOICE, user, invoice_id,
        costing_ids=body.costing_ids,
        invoice_date=body.invoice_date,
        due_date=body.due_date,
        remarks=body.remarks,
    )
    return InvoiceOut.model_validate(invoice)


# ── DELETE /api/invoices/{invoice_id} ────────────────────────

@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.delete")),
):
    await delete_document(db, INVOICE, user, invoice_id)


@router.get("/{invoice_id}/delete-check", response_model=GuardCheckOut)
async def invoice_delete_check(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("financials.read")),
):
    result = can_delete_invoice(await get_or_404(db, Invoice, invoice_id, "Invoice"))
    return GuardCheckOut(allowed=result.allowed, reason=result.reason, code=result.code)


# ── POST /api/invoices/{invoice_id}/receipts ─────────────────

@router.post("/{invoice_id}/receipts", response_model=InvoicePaymentResult, status_code=201)
async def receive_payment(
    invoice_id: str,
    body: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    invoice, receipt = await apply_payment(
        db, INVOICE, user, invoice_id,
        amount=body.amount,
        payment_date=body.payment_date,
        narration=body.narration,
    )
    return InvoicePaymentResult(
        invoice=InvoiceOut.model_validate(invoice),
        receipt=ReceiptOut.model_validate(receipt),
    )


# ── POST /api/invoices/{invoice_id}/close ────────────────────

@router.post("/{invoice_id}/close", response_model=InvoiceOut)
async def close_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    return InvoiceOut.model_validate(await close_document(db, INVOICE, user, invoice_id))
