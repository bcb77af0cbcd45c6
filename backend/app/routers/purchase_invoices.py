"""Purchase invoice router (vendor bills).

Endpoints:
    POST    /api/purchase-invoices                  Record from cost-side costing lines
    GET     /api/purchase-invoices                  List with filters
    GET     /api/purchase-invoices/{pi_id}          Detail with line snapshot
    PUT     /api/purchase-invoices/{pi_id}          Re-select costing lines
    DELETE  /api/purchase-invoices/{pi_id}          Delete (unpaid only), un-flags lines
    GET     /api/purchase-invoices/{pi_id}/delete-check
    POST    /api/purchase-invoices/{pi_id}/payments Apply a payment voucher
    POST    /api/purchase-invoices/{pi_id}/close    Manual close
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser, require_permission
from app.database import get_db
from app.models.enums import PaymentStatus
from app.models.purchase_invoice import PurchaseInvoice
from app.schemas.common import GuardCheckOut, PaginatedResponse
from app.schemas.invoice import (
    DocumentUpdate,
    PaymentCreate,
    PaymentVoucherOut,
    PurchaseInvoiceCreate,
    PurchaseInvoiceOut,
    PurchaseInvoicePaymentResult,
)
from app.services.common import get_or_404
from app.services.guards import can_delete_purchase_invoice
from app.services.invoicing import (
    PURCHASE_INVOICE,
    apply_payment,
    close_document,
    delete_document,
    generate_document,
    update_document,
)

router = APIRouter()


# ── POST /api/purchase-invoices ──────────────────────────────

@router.post("", response_model=PurchaseInvoiceOut, status_code=201)
async def create_purchase_invoice(
    body: PurchaseInvoiceCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    purchase_invoice = await generate_document(
        db, PURCHASE_INVOICE, user,
        shipment_id=body.shipment_id,
        party_id=body.vendor_id,
        costing_ids=body.costing_ids,
        invoice_date=body.invoice_date,
        due_date=body.due_date,
        remarks=body.remarks,
        extra={
            "vendor_invoice_no": body.vendor_invoice_no,
            "vendor_invoice_date": body.vendor_invoice_date,
        },
    )
    return PurchaseInvoiceOut.model_validate(purchase_invoice)


# ── GET /api/purchase-invoices ───────────────────────────────

@router.get("", response_model=PaginatedResponse[PurchaseInvoiceOut])
async def list_purchase_invoices(
    vendor_id: str | None = None,
    shipment_id: str | None = None,
    payment_status: PaymentStatus | None = None,
    limit: int = Query(50, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("financials.read")),
):
    base = select(PurchaseInvoice)
    if vendor_id:
        base = base.where(PurchaseInvoice.vendor_id == vendor_id)
    if shipment_id:
        base = base.where(PurchaseInvoice.shipment_id == shipment_id)
    if payment_status:
        base = base.where(PurchaseInvoice.payment_status == payment_status)

    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(
        base.order_by(PurchaseInvoice.invoice_date.desc(), PurchaseInvoice.purchase_number.desc())
        .limit(limit).offset(offset)
    )
    return PaginatedResponse(
        items=[PurchaseInvoiceOut.model_validate(p) for p in result.scalars().all()],
        total=total or 0,
        limit=limit,
        offset=offset,
    )


# ── GET /api/purchase-invoices/{pi_id} ───────────────────────

@router.get("/{pi_id}", response_model=PurchaseInvoiceOut)
async def get_purchase_invoice(
    pi_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("financials.read")),
):
    return PurchaseInvoiceOut.model_validate(
        await get_or_404(db, PurchaseInvoice, pi_id, "Purchase invoice")
    )


# ── PUT /api/purchase-invoices/{pi_id} ───────────────────────

@router.put("/{pi_id}", response_model=PurchaseInvoiceOut)
async def edit_purchase_invoice(
    pi_id: str,
    body: DocumentUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    purchase_invoice = await update_document(
        db, PURCHASE_INVOICE, user, pi_id,
        costing_ids=body.costing_ids,
        invoice_date=body.invoice_date,
        due_date=body.due_date,
        remarks=body.remarks,
        extra={
            "vendor_invoice_no": body.vendor_invoice_no,
            "vendor_invoice_date": body.vendor_invoice_date,
        },
    )
    return PurchaseInvoiceOut.model_validate(purchase_invoice)


# ── DELETE /api/purchase-invoices/{pi_id} ────────────────────

@router.delete("/{pi_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_purchase_invoice(
    pi_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.delete")),
):
    await delete_document(db, PURCHASE_INVOICE, user, pi_id)


@router.get("/{pi_id}/delete-check", response_model=GuardCheckOut)
async def purchase_invoice_delete_check(
    pi_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("financials.read")),
):
    result = can_delete_purchase_invoice(
        await get_or_404(db, PurchaseInvoice, pi_id, "Purchase invoice")
    )
    return GuardCheckOut(allowed=result.allowed, reason=result.reason, code=result.code)


# ── POST /api/purchase-invoices/{pi_id}/payments ─────────────

@router.post("/{pi_id}/payments", response_model=PurchaseInvoicePaymentResult, status_code=201)
async def pay_purchase_invoice(
    pi_id: str,
    body: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    purchase_invoice, voucher = await apply_payment(
        db, PURCHASE_INVOICE, user, pi_id,
        amount=body.amount,
        payment_date=body.payment_date,
        narration=body.narration,
    )
    return PurchaseInvoicePaymentResult(
        purchase_invoice=PurchaseInvoiceOut.model_validate(purchase_invoice),
        payment=PaymentVoucherOut.model_validate(voucher),
    )


# ── POST /api/purchase-invoices/{pi_id}/close ────────────────

@router.post("/{pi_id}/close", response_model=PurchaseInvoiceOut)
async def close_purchase_invoice(
    pi_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    return PurchaseInvoiceOut.model_validate(
        await close_document(db, PURCHASE_INVOICE, user, pi_id)
    )
