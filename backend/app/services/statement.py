"""Statement of account and aging: read-only projections.

Statement: opening row, then invoice debits and receipt credits in
(date, document number) order, with a running balance seeded from the
opening balance: the stored opening balance carried forward to
``from_date``, unless the caller supplies one.  The final balance always
equals ``total_debit - total_credit + opening_balance``.

Aging: one row per unpaid document; balances are never pooled or
allocated across documents.

Both read whatever is committed when the query runs, so a statement
taken while a payment is in flight may not include it yet.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.customer import Customer
from app.models.enums import PaymentStatus
from app.models.invoice import Invoice
from app.models.purchase_invoice import PurchaseInvoice
from app.models.receipt import Receipt
from app.schemas.statement import AgingReportOut, AgingRow, StatementEntry, StatementOut
from app.services.common import get_or_404
from app.services.payment_status import derive_payment_status


async def _balance_before(db: AsyncSession, customer: Customer, from_date: date | None) -> Decimal:
    """Stored opening balance carried forward through every movement dated before ``from_date``."""
    opening = customer.opening_balance or Decimal("0")
    if from_date is None:
        return opening
    debits = await db.scalar(
        select(func.coalesce(func.sum(Invoice.amount), 0))
        .where(Invoice.customer_id == customer.id, Invoice.invoice_date < from_date)
    )
    credits = await db.scalar(
        select(func.coalesce(func.sum(Receipt.amount), 0))
        .where(Receipt.customer_id == customer.id, Receipt.receipt_date < from_date)
    )
    return opening + Decimal(str(debits)) - Decimal(str(credits))


async def get_statement(
    db: AsyncSession,
    customer_id: str,
    from_date: date | None = None,
    to_date: date | None = None,
    opening_balance: Decimal | None = None,
) -> StatementOut:
    customer = await get_or_404(db, Customer, customer_id, "Customer")
    if opening_balance is None:
        opening = await _balance_before(db, customer, from_date)
    else:
        opening = opening_balance

    inv_q = select(Invoice).where(Invoice.customer_id == customer_id)
    rec_q = select(Receipt).where(Receipt.customer_id == customer_id)
    if from_date:
        inv_q = inv_q.where(Invoice.invoice_date >= from_date)
        rec_q = rec_q.where(Receipt.receipt_date >= from_date)
    if to_date:
        inv_q = inv_q.where(Invoice.invoice_date <= to_date)
        rec_q = rec_q.where(Receipt.receipt_date <= to_date)

    # (date, document_no, type, description, debit, credit)
    movements = []
    for inv in (await db.execute(inv_q)).scalars().all():
        movements.append((
            inv.invoice_date, inv.invoice_number, "invoice",
            f"Invoice {inv.invoice_number}", inv.amount, Decimal("0"),
        ))
    for rec in (await db.execute(rec_q)).scalars().all():
        movements.append((
            rec.receipt_date, rec.receipt_number, "receipt",
            rec.narration or f"Receipt {rec.receipt_number}", Decimal("0"), rec.amount,
        ))
    movements.sort(key=lambda m: (m[0], m[1]))

    entries = [StatementEntry(
        entry_type="opening",
        entry_date=from_date,
        document_no=None,
        description="Opening balance",
        debit=Decimal("0"),
        credit=Decimal("0"),
        balance=opening,
    )]
    balance = opening
    total_debit = Decimal("0")
    total_credit = Decimal("0")
    for entry_date, document_no, entry_type, description, debit, credit in movements:
        balance = balance + debit - credit
        total_debit += debit
        total_credit += credit
        entries.append(StatementEntry(
            entry_type=entry_type,
            entry_date=entry_date,
            document_no=document_no,
            description=description,
            debit=debit,
            credit=credit,
            balance=balance,
        ))

    return StatementOut(
        customer_id=customer.id,
        customer_code=customer.code,
        customer_name=customer.name,
        from_date=from_date,
        to_date=to_date,
        currency=settings.base_currency,
        opening_balance=opening,
        entries=entries,
        total_debit=total_debit,
        total_credit=total_credit,
        net_outstanding_receivable=balance,
    )


async def get_aging(
    db: AsyncSession,
    kind: str = "receivable",
    as_of: date | None = None,
    customer_id: str | None = None,
) -> AgingReportOut:
    """Unpaid invoices (receivable) or purchase invoices (payable) as of a date.

    ``aging_days`` is days since invoice date, never negative.  Bucketing is
    left to the caller.
    """
    as_of = as_of or date.today()
    if kind == "payable":
        model, number_col, party_col = PurchaseInvoice, PurchaseInvoice.purchase_number, PurchaseInvoice.vendor_id
    else:
        model, number_col, party_col = Invoice, Invoice.invoice_number, Invoice.customer_id

    query = (
        select(model, number_col, Customer.id, Customer.name)
        .join(Customer, Customer.id == party_col)
        .where(
            model.balance_amount > 0,
            model.payment_status != PaymentStatus.CLOSED,
            model.invoice_date <= as_of,
        )
        .order_by(model.invoice_date, number_col)
    )
    if customer_id:
        query = query.where(party_col == customer_id)

    rows = []
    total = Decimal("0")
    for document, number, party_id, party_name in (await db.execute(query)).all():
        rows.append(AgingRow(
            document_id=document.id,
            document_no=number,
            party_id=party_id,
            party_name=party_name,
            shipment_id=document.shipment_id,
            invoice_date=document.invoice_date,
            due_date=document.due_date,
            amount=document.amount,
            paid_amount=document.paid_amount,
            balance_amount=document.balance_amount,
            payment_status=derive_payment_status(
                document.amount, document.paid_amount,
                due_date=document.due_date, today=as_of,
            ),
            aging_days=max(0, (as_of - document.invoice_date).days),
        ))
        total += document.balance_amount

    return AgingReportOut(
        kind="payable" if kind == "payable" else "receivable",
        as_of=as_of,
        currency=settings.base_currency,
        rows=rows,
        total_balance=total,
    )
