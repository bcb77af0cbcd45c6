"""PurchaseInvoice: vendor bill recorded against the cost side of costings.

Mirror of ``Invoice``: same snapshot semantics, same money invariant and
the same payment-status lifecycle, settled by payment vouchers.
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


class PurchaseInvoice(Base):
    __tablename__ = "purchase_invoices"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    purchase_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    office_id: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # ── Links ────────────────────────────────────────────────
    shipment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shipments.id"), nullable=False, index=True
    )
    vendor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id"), nullable=False, index=True
    )
    vendor_invoice_no: Mapped[str | None] = mapped_column(String(100))
    vendor_invoice_date: Mapped[date | None] = mapped_column(Date)

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
        "PurchaseInvoiceLine", back_populates="purchase_invoice", lazy="selectin",
        cascade="all, delete-orphan", order_by="PurchaseInvoiceLine.line_no",
    )


class PurchaseInvoiceLine(Base):
    __tablename__ = "purchase_invoice_lines"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    purchase_invoice_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("purchase_invoices.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    costing_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("shipment_costings.id"), index=True
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)

    charge_details: Mapped[str] = mapped_column(String(255), nullable=False)
    basis: Mapped[str | None] = mapped_column(String(100))
    ppcc: Mapped[str | None] = mapped_column(String(20))
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 3), nullable=False)
    roe: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    fcy_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    tax_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    purchase_invoice = relationship("PurchaseInvoice", back_populates="lines")
