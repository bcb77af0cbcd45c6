"""Pydantic schemas for shipment party attachment."""

from datetime import datetime

from pydantic import BaseModel

from app.models.enums import MasterType, PartyType


class PartyCreate(BaseModel):
    customer_id: str
    party_type: PartyType
    # Defaults to the customer's own master type
    master_type: MasterType | None = None
    email: str | None = None
    phone: str | None = None
    mobile: str | None = None


class PartyOut(BaseModel):
    id: str
    shipment_id: str
    customer_id: str
    party_type: PartyType
    master_type: MasterType
    customer_name: str
    email: str | None
    phone: str | None
    mobile: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
