"""Pydantic schemas for shipment containers and cargo lines."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# ── Containers ───────────────────────────────────────────────

class ContainerCreate(BaseModel):
    container_number: str = Field(..., min_length=1, max_length=20)
    container_type_id: str | None = None
    seal_no: str | None = None
    no_of_pcs: int = Field(0, ge=0)
    package_type_id: str | None = None
    gross_weight: Decimal = Field(Decimal("0"), ge=0)
    volume: Decimal = Field(Decimal("0"), ge=0)
    description: str | None = None


class ContainerUpdate(BaseModel):
    container_number: str | None = Field(None, min_length=1, max_length=20)
    container_type_id: str | None = None
    seal_no: str | None = None
    no_of_pcs: int | None = Field(None, ge=0)
    package_type_id: str | None = None
    gross_weight: Decimal | None = Field(None, ge=0)
    volume: Decimal | None = Field(None, ge=0)
    description: str | None = None


class ContainerOut(BaseModel):
    id: str
    shipment_id: str
    container_number: str
    container_type_id: str | None
    seal_no: str | None
    no_of_pcs: int
    package_type_id: str | None
    gross_weight: Decimal
    volume: Decimal
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Cargo ────────────────────────────────────────────────────

class CargoCreate(BaseModel):
    quantity: int = Field(0, ge=0)
    load_type: str | None = None
    total_cbm: Decimal | None = Field(None, ge=0)
    total_weight: Decimal | None = Field(None, ge=0)
    description: str | None = None


class CargoUpdate(CargoCreate):
    quantity: int | None = Field(None, ge=0)


class CargoOut(BaseModel):
    id: str
    shipment_id: str
    quantity: int
    load_type: str | None
    total_cbm: Decimal | None
    total_weight: Decimal | None
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
