"""Pydantic schemas for customer master records."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from app.models.enums import MasterType
from app.schemas.validators import validate_email


class CustomerCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    master_type: MasterType = MasterType.DEBTORS
    email: str | None = None
    phone: str | None = None
    country: str | None = None
    address: str | None = None
    tax_no: str | None = None
    base_currency: str | None = Field(None, min_length=3, max_length=3)
    credit_days: int | None = Field(None, ge=0)
    opening_balance: Decimal = Decimal("0")

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str | None) -> str | None:
        return validate_email(v) if v else v


class CustomerUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    master_type: MasterType | None = None
    email: str | None = None
    phone: str | None = None
    country: str | None = None
    address: str | None = None
    tax_no: str | None = None
    base_currency: str | None = Field(None, min_length=3, max_length=3)
    credit_days: int | None = Field(None, ge=0)
    opening_balance: Decimal | None = None
    is_active: bool | None = None

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str | None) -> str | None:
        return validate_email(v) if v else v


class CustomerOut(BaseModel):
    id: str
    code: str
    name: str
    master_type: MasterType
    email: str | None
    phone: str | None
    country: str | None
    address: str | None
    tax_no: str | None
    base_currency: str | None
    credit_days: int | None
    opening_balance: Decimal
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
