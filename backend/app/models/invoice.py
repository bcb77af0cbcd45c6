"""Invoice: customer-facing billing document generated from costing lines.

Lines are an immutable snapshot of the sale side of each source costing
at generation time; later costing edits never touch them.

Money invariant, maintained by ``app.services.payment_status.set_paid_amount``:
    balance_amount + paid_amount == amount,  0 <= paid_amount <= amount

Lifecycle:  Pending → PartiallyPaid → Paid   (Overdue is a display overlay,
            Closed a manual terminal override)
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date, DateTime, Enum as SAEnum, ForeignKey, Integer, Numeric, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.enums import PaymentStatus


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    invoice_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    office_id: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # ── Links ────────────────────────────────────────────────
    shipment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shipments.id"), nullable=False, index=True
    )
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id"), nullable=False, index=True
    )

    # ── Dates ────────────────────────────────────────────────
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    due_date: Mapped[date | None] = mapped_column(Date)

    # ── Amounts (base currency) ──────────────────────────────
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    sub_total: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    total_tax: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    balance_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    # Stored without the overdue overlay; see services.payment_status
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus), default=PaymentStatus.PENDING, index=True
    )

    # ── Metadata ─────────────────────────────────────────────
    remarks: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # ── Relationships ────────────────────────────────────────
    lines = relationship(
        "InvoiceLine", back_populates="invoice", lazy="selectin",
        cascade="all, delete-orphan", order_by="InvoiceLine.line_no",
    )


class InvoiceLine(Base):
    __tablename__ = "invoice_lines"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    invoice_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    costing_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("shipment_costings.id"), index=True
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)

    charge_details: Mapped[str] = mapped_column(String(255), nullable=False)
    basis: Mapped[str | None] = mapped_column(String(100))  # unit name
    ppcc: Mapped[str | None] = mapped_column(String(20))
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 3), nullable=False)
    roe: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)  # rate of exchange
    fcy_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    tax_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)  # LCY, before tax

    invoice = relationship("Invoice", back_populates="lines")
