"""ShipmentParty: a customer attached to a shipment under a category.

A customer may appear several times on one shipment (e.g. as Shipper and
as Notify Party), but never twice under the same category.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.enums import MasterType, PartyType


class ShipmentParty(Base):
    __tablename__ = "shipment_parties"
    __table_args__ = (
        UniqueConstraint(
            "shipment_id", "customer_id", "party_type",
            name="uq_shipment_party_category",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    shipment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shipments.id"), nullable=False, index=True
    )
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id"), nullable=False, index=True
    )
    party_type: Mapped[PartyType] = mapped_column(SAEnum(PartyType), nullable=False)
    master_type: Mapped[MasterType] = mapped_column(SAEnum(MasterType), nullable=False)

    # Snapshot of contact details at attach time (printed on the B/L)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(100))
    mobile: Mapped[str | None] = mapped_column(String(100))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    shipment = relationship("Shipment", back_populates="parties")
