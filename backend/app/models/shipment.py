"""Shipment: the job file every party, container and costing hangs off.

The job number is assigned once from the office sequence and never
changes.  Shipments carrying costings or billing documents are never
hard-deleted; they move to Closed / Cancelled instead.

Lifecycle:  Opened → Closed | Cancelled
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Date, DateTime, Enum as SAEnum, ForeignKey, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.enums import ShipmentDirection, ShipmentMode, ShipmentStatus, StatusEventType


class Shipment(Base):
    __tablename__ = "shipments"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    job_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    office_id: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    job_date: Mapped[date] = mapped_column(Date, nullable=False)
    job_status: Mapped[ShipmentStatus] = mapped_column(
        SAEnum(ShipmentStatus), default=ShipmentStatus.OPENED, index=True
    )
    direction: Mapped[ShipmentDirection] = mapped_column(SAEnum(ShipmentDirection), nullable=False)
    mode: Mapped[ShipmentMode] = mapped_column(SAEnum(ShipmentMode), nullable=False)
    incoterms: Mapped[str | None] = mapped_column(String(10))

    # ── Bills of lading ──────────────────────────────────────
    hbl_no: Mapped[str | None] = mapped_column(String(100))
    hbl_date: Mapped[date | None] = mapped_column(Date)
    mbl_no: Mapped[str | None] = mapped_column(String(100))
    mbl_date: Mapped[date | None] = mapped_column(Date)

    # ── Route ────────────────────────────────────────────────
    port_of_loading_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("ports.id"))
    port_of_discharge_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("ports.id"))
    place_of_receipt: Mapped[str | None] = mapped_column(String(255))
    place_of_delivery: Mapped[str | None] = mapped_column(String(255))

    # ── Vessel & schedule ────────────────────────────────────
    carrier: Mapped[str | None] = mapped_column(String(255))
    vessel: Mapped[str | None] = mapped_column(String(255))
    voyage: Mapped[str | None] = mapped_column(String(50))
    etd: Mapped[date | None] = mapped_column(Date)
    eta: Mapped[date | None] = mapped_column(Date)

    # ── Metadata ─────────────────────────────────────────────
    notes: Mapped[str | None] = mapped_column(Text)
    internal_notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # ── Relationships ────────────────────────────────────────
    parties = relationship(
        "ShipmentParty", back_populates="shipment", lazy="selectin",
        cascade="all, delete-orphan",
    )
    containers = relationship(
        "ShipmentContainer", back_populates="shipment", lazy="selectin",
        cascade="all, delete-orphan",
    )
    cargos = relationship(
        "ShipmentCargo", back_populates="shipment", lazy="selectin",
        cascade="all, delete-orphan",
    )
    costings = relationship(
        "ShipmentCosting", back_populates="shipment", lazy="selectin",
        order_by="ShipmentCosting.created_at",
    )
    status_logs = relationship(
        "ShipmentStatusLog", back_populates="shipment", lazy="selectin",
        cascade="all, delete-orphan", order_by="ShipmentStatusLog.status_date",
    )


class ShipmentStatusLog(Base):
    """Append-only tracking event on a shipment."""

    __tablename__ = "shipment_status_logs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    shipment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shipments.id"), nullable=False, index=True
    )
    event_type: Mapped[StatusEventType] = mapped_column(
        SAEnum(StatusEventType), default=StatusEventType.OTHER
    )
    status_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    remarks: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    shipment = relationship("Shipment", back_populates="status_logs")
