"""Pydantic schemas for shipments and their tracking log."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from app.models.enums import (
    ShipmentDirection, ShipmentMode, ShipmentStatus, StatusEventType,
)
from app.schemas.container import CargoOut, ContainerOut
from app.schemas.costing import CostingOut, CostingSummary
from app.schemas.party import PartyOut


class ShipmentCreate(BaseModel):
    job_date: date | None = None  # defaults to today
    direction: ShipmentDirection
    mode: ShipmentMode
    incoterms: str | None = Field(None, max_length=10)
    hbl_no: str | None = None
    hbl_date: date | None = None
    mbl_no: str | None = None
    mbl_date: date | None = None
    port_of_loading_id: str | None = None
    port_of_discharge_id: str | None = None
    place_of_receipt: str | None = None
    place_of_delivery: str | None = None
    carrier: str | None = None
    vessel: str | None = None
    voyage: str | None = None
    etd: date | None = None
    eta: date | None = None
    notes: str | None = None
    internal_notes: str | None = None


class ShipmentUpdate(BaseModel):
    job_status: ShipmentStatus | None = None
    direction: ShipmentDirection | None = None
    mode: ShipmentMode | None = None
    incoterms: str | None = Field(None, max_length=10)
    hbl_no: str | None = None
    hbl_date: date | None = None
    mbl_no: str | None = None
    mbl_date: date | None = None
    port_of_loading_id: str | None = None
    port_of_discharge_id: str | None = None
    place_of_receipt: str | None = None
    place_of_delivery: str | None = None
    carrier: str | None = None
    vessel: str | None = None
    voyage: str | None = None
    etd: date | None = None
    eta: date | None = None
    notes: str | None = None
    internal_notes: str | None = None

    # Omit to keep the current value; the job always has one
    @field_validator("job_status", "direction", "mode")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v


class ShipmentSummary(BaseModel):
    id: str
    job_number: str
    office_id: str
    job_date: date
    job_status: ShipmentStatus
    direction: ShipmentDirection
    mode: ShipmentMode
    hbl_no: str | None
    mbl_no: str | None
    etd: date | None
    eta: date | None
    created_at: datetime

    model_config = {"from_attributes": True}


class StatusLogCreate(BaseModel):
    event_type: StatusEventType = StatusEventType.OTHER
    status_date: datetime
    description: str | None = Field(None, max_length=255)
    remarks: str | None = None


class StatusLogOut(BaseModel):
    id: str
    shipment_id: str
    event_type: StatusEventType
    status_date: datetime
    description: str | None
    remarks: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ShipmentDetail(ShipmentSummary):
    incoterms: str | None
    hbl_date: date | None
    mbl_date: date | None
    port_of_loading_id: str | None
    port_of_discharge_id: str | None
    place_of_receipt: str | None
    place_of_delivery: str | None
    carrier: str | None
    vessel: str | None
    voyage: str | None
    notes: str | None
    internal_notes: str | None
    updated_at: datetime

    parties: list[PartyOut] = []
    containers: list[ContainerOut] = []
    cargos: list[CargoOut] = []
    costings: list[CostingOut] = []
    status_logs: list[StatusLogOut] = []
    totals: CostingSummary | None = None
