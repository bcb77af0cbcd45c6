"""ShipmentCosting: one dual-sided charge line on a shipment.

Sale side is billed to ``bill_to_customer_id``; cost side is owed to
``vendor_customer_id``.  FCY/LCY/tax/GP columns are always written by
``app.services.costing.compute_costing`` and never taken from the caller.

``sale_invoiced`` / ``purchase_invoiced`` are flipped by the invoice
generator in the same transaction that creates (or deletes) the billing
document.  A line with either flag set cannot be deleted.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class ShipmentCosting(Base):
    __tablename__ = "shipment_costings"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    shipment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shipments.id"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text)
    ppcc: Mapped[str | None] = mapped_column(String(20))  # Prepaid | Collect
    unit_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("units.id"))

    # ── Sale ─────────────────────────────────────────────────
    sale_qty: Mapped[Decimal] = mapped_column(Numeric(18, 3), default=Decimal("0"))
    sale_unit: Mapped[Decimal] = mapped_column(Numeric(18, 4), default=Decimal("0"))
    sale_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    sale_ex_rate: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=Decimal("1"))
    sale_fcy: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    sale_lcy: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    sale_tax_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    sale_tax_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    bill_to_customer_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("customers.id"), index=True
    )

    # ── Cost ─────────────────────────────────────────────────
    cost_qty: Mapped[Decimal] = mapped_column(Numeric(18, 3), default=Decimal("0"))
    cost_unit: Mapped[Decimal] = mapped_column(Numeric(18, 4), default=Decimal("0"))
    cost_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    cost_ex_rate: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=Decimal("1"))
    cost_fcy: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    cost_lcy: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    cost_tax_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    cost_tax_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    vendor_customer_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("customers.id"), index=True
    )
    cost_reference_no: Mapped[str | None] = mapped_column(String(100))
    cost_date: Mapped[date | None] = mapped_column(Date)

    # sale_lcy - cost_lcy, tax excluded
    gp: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))

    # ── Billing flags ────────────────────────────────────────
    sale_invoiced: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    purchase_invoiced: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # ── Metadata ─────────────────────────────────────────────
    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # ── Relationships ────────────────────────────────────────
    shipment = relationship("Shipment", back_populates="costings")
