"""Payment-status state machine shared by invoices and purchase invoices.

    Pending ──payment──▶ PartiallyPaid ──payment──▶ Paid
       └────────────── full payment ───────────────▲
    Overdue : display overlay while balance > 0 and due_date < today
    Closed  : manual terminal override; suppresses recomputation

``derive_payment_status`` is the only place a status is computed.  Stored
rows carry the status without the overdue overlay (it depends on the
clock); responses apply it for the current day.
"""

from datetime import date
from decimal import Decimal

from app.middleware.exceptions import BusinessLogicError
from app.models.enums import PaymentStatus


def derive_payment_status(
    amount: Decimal,
    paid: Decimal,
    due_date: date | None = None,
    today: date | None = None,
    closed: bool = False,
) -> PaymentStatus:
    """Status for a document with the given totals.

    Pass ``due_date`` and ``today`` to get the display status; omit them to
    get the stored one.
    """
    if closed:
        return PaymentStatus.CLOSED
    balance = Decimal(amount) - Decimal(paid)
    if balance <= 0:
        return PaymentStatus.PAID
    if due_date is not None and today is not None and due_date < today:
        return PaymentStatus.OVERDUE
    if Decimal(paid) > 0:
        return PaymentStatus.PARTIALLY_PAID
    return PaymentStatus.PENDING


def set_paid_amount(document, paid: Decimal) -> None:
    """Write paid/balance/status on an Invoice or PurchaseInvoice together.

    Keeps ``balance_amount + paid_amount == amount`` and
    ``0 <= paid_amount <= amount``.
    """
    if paid < 0 or paid > document.amount:
        raise BusinessLogicError(
            f"Paid amount {paid} is outside 0..{document.amount}",
            error_code="PAYMENT_EXCEEDS_BALANCE",
            details={
                "amount": str(document.amount),
                "paid_amount": str(document.paid_amount),
            },
        )
    document.paid_amount = paid
    document.balance_amount = document.amount - paid
    document.payment_status = derive_payment_status(
        document.amount,
        paid,
        closed=document.payment_status == PaymentStatus.CLOSED,
    )
