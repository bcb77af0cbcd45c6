"""ShipmentContainer / ShipmentCargo: physical units on a shipment.

Descriptive only: they feed B/L and manifest documents but carry no
financial state, so they can always be deleted.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class ShipmentContainer(Base):
    __tablename__ = "shipment_containers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    shipment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shipments.id"), nullable=False, index=True
    )
    container_number: Mapped[str] = mapped_column(String(20), nullable=False)
    container_type_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("container_types.id")
    )
    seal_no: Mapped[str | None] = mapped_column(String(100))
    no_of_pcs: Mapped[int] = mapped_column(Integer, default=0)
    package_type_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("package_types.id")
    )
    gross_weight: Mapped[Decimal] = mapped_column(Numeric(18, 3), default=Decimal("0"))
    volume: Mapped[Decimal] = mapped_column(Numeric(18, 3), default=Decimal("0"))  # CBM
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    shipment = relationship("Shipment", back_populates="containers")


class ShipmentCargo(Base):
    __tablename__ = "shipment_cargos"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    shipment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shipments.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    load_type: Mapped[str | None] = mapped_column(String(50))
    total_cbm: Mapped[Decimal | None] = mapped_column(Numeric(18, 3))
    total_weight: Mapped[Decimal | None] = mapped_column(Numeric(18, 3))
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    shipment = relationship("Shipment", back_populates="cargos")
