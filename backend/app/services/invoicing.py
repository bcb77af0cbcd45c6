"""Invoice / purchase-invoice generator and payment application.

Both document kinds share one code path parameterised by a BillingSide:

    sale → Invoice          lines from sale_*  flag sale_invoiced
    cost → PurchaseInvoice  lines from cost_*  flag purchase_invoiced

Flag flips are compare-and-swap updates issued in the same transaction as
the document write:

    UPDATE shipment_costings SET <flag> = true
     WHERE id IN (:ids) AND <flag> = false

A row count short of the selection means another session claimed a line
first → ConflictError (retryable), and the request's rollback discards the
half-built document.  Releasing flags uses the mirror update; a short row
count there means flags and documents already disagree →
IntegrityViolationError.  The shipment row is locked FOR UPDATE for the
whole unit of work.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser
from app.config import settings
from app.middleware.exceptions import (
    BusinessLogicError, ConflictError, IntegrityViolationError, ResourceNotFoundError,
)
from app.models.costing import ShipmentCosting
from app.models.customer import Customer
from app.models.enums import BillingSide, PaymentStatus
from app.models.invoice import Invoice, InvoiceLine
from app.models.purchase_invoice import PurchaseInvoice, PurchaseInvoiceLine
from app.models.receipt import PaymentVoucher, Receipt
from app.models.reference import Unit
from app.services.common import get_or_404, lock_shipment
from app.services.guards import can_delete_document
from app.services.payment_status import set_paid_amount
from app.utils.activity import log_activity
from app.utils.numbering import next_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentKind:
    side: BillingSide
    label: str
    entity_type: str
    document_model: type
    line_model: type
    number_attr: str          # document number column
    party_attr: str           # customer column on the document
    costing_party_attr: str   # customer column on the costing
    flag_attr: str            # invoiced flag on the costing
    amount_prefix: str        # sale_ / cost_ columns on the costing
    payment_kind: str         # sequence kind for receipts / vouchers


INVOICE = DocumentKind(
    side=BillingSide.SALE,
    label="Invoice",
    entity_type="invoice",
    document_model=Invoice,
    line_model=InvoiceLine,
    number_attr="invoice_number",
    party_attr="customer_id",
    costing_party_attr="bill_to_customer_id",
    flag_attr="sale_invoiced",
    amount_prefix="sale",
    payment_kind="receipt",
)

PURCHASE_INVOICE = DocumentKind(
    side=BillingSide.COST,
    label="Purchase invoice",
    entity_type="purchase_invoice",
    document_model=PurchaseInvoice,
    line_model=PurchaseInvoiceLine,
    number_attr="purchase_number",
    party_attr="vendor_id",
    costing_party_attr="vendor_customer_id",
    flag_attr="purchase_invoiced",
    amount_prefix="cost",
    payment_kind="payment",
)

KINDS = {BillingSide.SALE: INVOICE, BillingSide.COST: PURCHASE_INVOICE}


# ── Flag compare-and-swap ────────────────────────────────────

async def claim_costings(db: AsyncSession, kind: DocumentKind, costing_ids: list[str]) -> None:
    """Flip the side's flag false → true on every id, or fail as a whole."""
    if not costing_ids:
        return
    flag = getattr(ShipmentCosting, kind.flag_attr)
    result = await db.execute(
        update(ShipmentCosting)
        .where(ShipmentCosting.id.in_(costing_ids), flag == False)  # noqa: E712
        .values({kind.flag_attr: True})
        .execution_options(synchronize_session="evaluate")
    )
    if result.rowcount != len(costing_ids):
        raise ConflictError(
            f"{len(costing_ids) - result.rowcount} of the selected costing lines "
            f"were billed by another user; refresh and retry",
            details={"costing_ids": costing_ids},
        )


async def release_costings(db: AsyncSession, kind: DocumentKind, costing_ids: list[str]) -> None:
    """Flip the side's flag true → false; every id must currently be flagged."""
    if not costing_ids:
        return
    flag = getattr(ShipmentCosting, kind.flag_attr)
    result = await db.execute(
        update(ShipmentCosting)
        .where(ShipmentCosting.id.in_(costing_ids), flag == True)  # noqa: E712
        .values({kind.flag_attr: False})
        .execution_options(synchronize_session="evaluate")
    )
    if result.rowcount != len(costing_ids):
        raise IntegrityViolationError(
            f"Releasing {kind.flag_attr} matched {result.rowcount} of "
            f"{len(costing_ids)} costing lines",
            details={"costing_ids": costing_ids, "flag": kind.flag_attr},
        )


# ── Selection & snapshot ─────────────────────────────────────

async def _load_selection(
    db: AsyncSession,
    kind: DocumentKind,
    shipment_id: str,
    party_id: str,
    costing_ids: list[str],
    owned_ids: set[str] = frozenset(),
) -> list[ShipmentCosting]:
    """Load and check the costing lines a document is built from.

    ``owned_ids`` are lines already on the document being edited; their
    flag is expected to be set.
    """
    result = await db.execute(
        select(ShipmentCosting)
        .where(ShipmentCosting.id.in_(costing_ids))
        .execution_options(populate_existing=True)
    )
    by_id = {c.id: c for c in result.scalars().all()}

    foreign = [cid for cid in costing_ids if cid not in by_id or by_id[cid].shipment_id != shipment_id]
    if foreign:
        raise BusinessLogicError(
            f"Costing lines do not belong to this shipment: {', '.join(foreign[:3])}",
            error_code="COSTING_NOT_ON_SHIPMENT",
            details={"costing_ids": foreign},
        )

    costings = [by_id[cid] for cid in costing_ids]

    mismatched = [c.id for c in costings if getattr(c, kind.costing_party_attr) != party_id]
    if mismatched:
        raise BusinessLogicError(
            f"Costing lines are not assigned to this party on the "
            f"{kind.side.value} side: {', '.join(mismatched[:3])}",
            error_code="PARTY_MISMATCH",
            details={"costing_ids": mismatched, "field": kind.costing_party_attr},
        )

    billed = [c.id for c in costings if getattr(c, kind.flag_attr) and c.id not in owned_ids]
    if billed:
        raise ConflictError(
            f"Costing lines are already billed: {', '.join(billed[:3])}",
            details={"costing_ids": billed},
        )
    return costings


async def _build_lines(db: AsyncSession, kind: DocumentKind, costings: list[ShipmentCosting]):
    """Immutable line snapshot plus (sub_total, total_tax)."""
    unit_ids = {c.unit_id for c in costings if c.unit_id}
    unit_names = {}
    if unit_ids:
        result = await db.execute(select(Unit.id, Unit.name).where(Unit.id.in_(unit_ids)))
        unit_names = dict(result.all())

    p = kind.amount_prefix
    lines = []
    for line_no, costing in enumerate(costings, start=1):
        lines.append(kind.line_model(
            costing_id=costing.id,
            line_no=line_no,
            charge_details=costing.description,
            basis=unit_names.get(costing.unit_id),
            ppcc=costing.ppcc,
            currency=getattr(costing, f"{p}_currency"),
            rate=getattr(costing, f"{p}_unit"),
            quantity=getattr(costing, f"{p}_qty"),
            roe=getattr(costing, f"{p}_ex_rate"),
            fcy_amount=getattr(costing, f"{p}_fcy"),
            tax_percentage=getattr(costing, f"{p}_tax_percentage"),
            tax_amount=getattr(costing, f"{p}_tax_amount"),
            amount=getattr(costing, f"{p}_lcy"),
        ))

    sub_total = sum((line.amount for line in lines), Decimal("0"))
    total_tax = sum((line.tax_amount for line in lines), Decimal("0"))
    if sub_total + total_tax <= 0:
        raise BusinessLogicError(
            f"{kind.label} total must be greater than zero",
            error_code="EMPTY_DOCUMENT",
        )
    return lines, sub_total, total_tax


# ── Generate / edit / delete ─────────────────────────────────

async def generate_document(
    db: AsyncSession,
    kind: DocumentKind,
    user: CurrentUser,
    *,
    shipment_id: str,
    party_id: str,
    costing_ids: list[str],
    invoice_date: date | None = None,
    due_date: date | None = None,
    remarks: str | None = None,
    extra: dict | None = None,
):
    """Create an Invoice / PurchaseInvoice from costing lines, all-or-nothing."""
    shipment = await lock_shipment(db, shipment_id)
    party = await get_or_404(db, Customer, party_id, "Customer")
    costings = await _load_selection(db, kind, shipment_id, party_id, costing_ids)
    lines, sub_total, total_tax = await _build_lines(db, kind, costings)

    await claim_costings(db, kind, costing_ids)

    invoice_date = invoice_date or date.today()
    if due_date is None:
        credit_days = party.credit_days if party.credit_days is not None else settings.default_credit_days
        due_date = invoice_date + timedelta(days=credit_days)

    amount = sub_total + total_tax
    number = await next_number(db, kind.entity_type, user.office_id, invoice_date)
    document = kind.document_model(
        office_id=user.office_id,
        shipment_id=shipment_id,
        invoice_date=invoice_date,
        due_date=due_date,
        currency=settings.base_currency,
        sub_total=sub_total,
        total_tax=total_tax,
        amount=amount,
        paid_amount=Decimal("0"),
        balance_amount=amount,
        payment_status=PaymentStatus.PENDING,
        remarks=remarks,
        created_by=user.id,
        **{kind.number_attr: number, kind.party_attr: party_id},
        **(extra or {}),
    )
    document.lines = lines
    db.add(document)
    await db.flush()

    await log_activity(
        db, user,
        action="generated",
        entity_type=kind.entity_type,
        entity_id=document.id,
        entity_code=number,
        summary=f"{kind.label} {number} for {party.name} on job {shipment.job_number}: {amount}",
        details={"costing_ids": costing_ids},
    )
    logger.info(
        f"{kind.label} {number} generated from {len(costing_ids)} costing lines",
        extra={"shipment_id": shipment_id, "document_id": document.id},
    )
    return document


async def update_document(
    db: AsyncSession,
    kind: DocumentKind,
    user: CurrentUser,
    document_id: str,
    *,
    costing_ids: list[str],
    invoice_date: date | None = None,
    due_date: date | None = None,
    remarks: str | None = None,
    extra: dict | None = None,
):
    """Re-select the costing lines of an issued document.

    Lines dropped from the selection are released, new ones claimed, and the
    snapshot is rebuilt from the current costing values.
    """
    document = await get_or_404(db, kind.document_model, document_id, kind.label)
    await lock_shipment(db, document.shipment_id)
    await db.refresh(document)

    if document.payment_status == PaymentStatus.CLOSED:
        raise BusinessLogicError(
            f"{kind.label} {getattr(document, kind.number_attr)} is closed",
            error_code="DOCUMENT_CLOSED",
        )

    party_id = getattr(document, kind.party_attr)
    current_ids = {line.costing_id for line in document.lines if line.costing_id}
    costings = await _load_selection(
        db, kind, document.shipment_id, party_id, costing_ids, owned_ids=current_ids,
    )
    lines, sub_total, total_tax = await _build_lines(db, kind, costings)

    amount = sub_total + total_tax
    if amount < document.paid_amount:
        raise BusinessLogicError(
            f"New total {amount} is below the {document.paid_amount} already paid",
            error_code="TOTAL_BELOW_PAID",
            details={"amount": str(amount), "paid_amount": str(document.paid_amount)},
        )

    removed = sorted(current_ids - set(costing_ids))
    added = [cid for cid in costing_ids if cid not in current_ids]
    await release_costings(db, kind, removed)
    await claim_costings(db, kind, added)

    document.lines = lines
    document.sub_total = sub_total
    document.total_tax = total_tax
    document.amount = amount
    set_paid_amount(document, document.paid_amount)
    if invoice_date is not None:
        document.invoice_date = invoice_date
    if due_date is not None:
        document.due_date = due_date
    if remarks is not None:
        document.remarks = remarks
    for name, value in (extra or {}).items():
        if value is not None:
            setattr(document, name, value)
    await db.flush()

    await log_activity(
        db, user,
        action="updated",
        entity_type=kind.entity_type,
        entity_id=document.id,
        entity_code=getattr(document, kind.number_attr),
        summary=f"{kind.label} lines re-selected: +{len(added)} / -{len(removed)}",
        details={"added": added, "removed": removed},
    )
    return document


async def delete_document(db: AsyncSession, kind: DocumentKind, user: CurrentUser, document_id: str) -> None:
    """Delete an unpaid document and un-flag every costing it billed."""
    document = await get_or_404(db, kind.document_model, document_id, kind.label)
    await lock_shipment(db, document.shipment_id)
    await db.refresh(document)

    can_delete_document(document, kind.label).enforce()

    number = getattr(document, kind.number_attr)
    costing_ids = [line.costing_id for line in document.lines if line.costing_id]
    await release_costings(db, kind, costing_ids)

    await db.delete(document)
    await db.flush()

    await log_activity(
        db, user,
        action="deleted",
        entity_type=kind.entity_type,
        entity_id=document_id,
        entity_code=number,
        summary=f"Deleted {kind.label.lower()} {number}; released {len(costing_ids)} costing lines",
    )


async def list_shipment_documents(db: AsyncSession, shipment_id: str) -> tuple[list, list]:
    invoices = await db.execute(
        select(Invoice).where(Invoice.shipment_id == shipment_id)
        .order_by(Invoice.invoice_date, Invoice.invoice_number)
    )
    purchases = await db.execute(
        select(PurchaseInvoice).where(PurchaseInvoice.shipment_id == shipment_id)
        .order_by(PurchaseInvoice.invoice_date, PurchaseInvoice.purchase_number)
    )
    return list(invoices.scalars().all()), list(purchases.scalars().all())


# ── Payments ─────────────────────────────────────────────────

async def apply_payment(
    db: AsyncSession,
    kind: DocumentKind,
    user: CurrentUser,
    document_id: str,
    *,
    amount: Decimal,
    payment_date: date | None = None,
    narration: str | None = None,
):
    """Record a receipt (invoice) or payment voucher (purchase invoice).

    Each payment settles exactly one document; there is no pooling across a
    party's open documents.  Returns (document, voucher).
    """
    result = await db.execute(
        select(kind.document_model)
        .where(kind.document_model.id == document_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    document = result.scalar_one_or_none()
    if document is None:
        raise ResourceNotFoundError(kind.label, document_id)

    if amount <= 0:
        raise BusinessLogicError("Payment amount must be positive", error_code="INVALID_AMOUNT")
    if document.paid_amount + amount > document.amount:
        raise BusinessLogicError(
            f"Payment of {amount} exceeds the outstanding balance {document.balance_amount}",
            error_code="PAYMENT_EXCEEDS_BALANCE",
            details={"balance_amount": str(document.balance_amount)},
        )

    set_paid_amount(document, document.paid_amount + amount)

    payment_date = payment_date or date.today()
    number = await next_number(db, kind.payment_kind, user.office_id, payment_date)
    party_id = getattr(document, kind.party_attr)
    if kind.side == BillingSide.SALE:
        voucher = Receipt(
            receipt_number=number,
            office_id=user.office_id,
            customer_id=party_id,
            invoice_id=document.id,
            receipt_date=payment_date,
            amount=amount,
            currency=document.currency,
            narration=narration,
            created_by=user.id,
        )
    else:
        voucher = PaymentVoucher(
            voucher_number=number,
            office_id=user.office_id,
            vendor_id=party_id,
            purchase_invoice_id=document.id,
            payment_date=payment_date,
            amount=amount,
            currency=document.currency,
            narration=narration,
            created_by=user.id,
        )
    db.add(voucher)
    await db.flush()

    await log_activity(
        db, user,
        action="paid",
        entity_type=kind.entity_type,
        entity_id=document.id,
        entity_code=getattr(document, kind.number_attr),
        summary=f"{number}: {amount} applied, balance {document.balance_amount}",
    )
    return document, voucher


async def record_on_account_receipt(
    db: AsyncSession,
    user: CurrentUser,
    customer_id: str,
    *,
    amount: Decimal,
    receipt_date: date | None = None,
    narration: str | None = None,
) -> Receipt:
    """Customer money not allocated to any invoice; shows on the statement only."""
    customer = await get_or_404(db, Customer, customer_id, "Customer")
    receipt_date = receipt_date or date.today()
    receipt = Receipt(
        receipt_number=await next_number(db, "receipt", user.office_id, receipt_date),
        office_id=user.office_id,
        customer_id=customer.id,
        invoice_id=None,
        receipt_date=receipt_date,
        amount=amount,
        currency=settings.base_currency,
        narration=narration,
        created_by=user.id,
    )
    db.add(receipt)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="receipt",
        entity_id=receipt.id,
        entity_code=receipt.receipt_number,
        summary=f"On-account receipt {amount} from {customer.name}",
    )
    return receipt


async def close_document(db: AsyncSession, kind: DocumentKind, user: CurrentUser, document_id: str):
    """Manual terminal override; later payments no longer change the status."""
    document = await get_or_404(db, kind.document_model, document_id, kind.label)
    document.payment_status = PaymentStatus.CLOSED
    await db.flush()

    await log_activity(
        db, user,
        action="closed",
        entity_type=kind.entity_type,
        entity_id=document.id,
        entity_code=getattr(document, kind.number_attr),
        summary=f"{kind.label} closed with balance {document.balance_amount}",
    )
    return document
