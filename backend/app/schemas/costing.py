"""Pydantic schemas for costing lines.

Amount fields the client may echo back (``*_fcy``, ``*_lcy``,
``*_tax_amount``, ``gp``) are accepted for form compatibility and then
ignored: the stored values are always recomputed from quantities, rates
and exchange rates.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from app.schemas.validators import validate_currency_code


class CostingInput(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    remarks: str | None = None
    ppcc: str | None = None
    unit_id: str | None = None

    # Sale side
    sale_qty: Decimal = Field(Decimal("0"), ge=0)
    sale_unit: Decimal = Field(Decimal("0"), ge=0)
    sale_currency: str
    sale_ex_rate: Decimal = Field(Decimal("1"), ge=0)
    sale_tax_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    bill_to_customer_id: str | None = None

    # Cost side
    cost_qty: Decimal = Field(Decimal("0"), ge=0)
    cost_unit: Decimal = Field(Decimal("0"), ge=0)
    cost_currency: str
    cost_ex_rate: Decimal = Field(Decimal("1"), ge=0)
    cost_tax_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    vendor_customer_id: str | None = None
    cost_reference_no: str | None = None
    cost_date: date | None = None

    # Advisory only
    sale_fcy: Decimal | None = None
    sale_lcy: Decimal | None = None
    sale_tax_amount: Decimal | None = None
    cost_fcy: Decimal | None = None
    cost_lcy: Decimal | None = None
    cost_tax_amount: Decimal | None = None
    gp: Decimal | None = None

    @field_validator("sale_currency", "cost_currency")
    @classmethod
    def currency_format(cls, v: str) -> str:
        return validate_currency_code(v)


class CostingOut(BaseModel):
    id: str
    shipment_id: str
    description: str
    remarks: str | None
    ppcc: str | None
    unit_id: str | None

    sale_qty: Decimal
    sale_unit: Decimal
    sale_currency: str
    sale_ex_rate: Decimal
    sale_fcy: Decimal
    sale_lcy: Decimal
    sale_tax_percentage: Decimal
    sale_tax_amount: Decimal
    bill_to_customer_id: str | None

    cost_qty: Decimal
    cost_unit: Decimal
    cost_currency: str
    cost_ex_rate: Decimal
    cost_fcy: Decimal
    cost_lcy: Decimal
    cost_tax_percentage: Decimal
    cost_tax_amount: Decimal
    vendor_customer_id: str | None
    cost_reference_no: str | None
    cost_date: date | None

    gp: Decimal
    sale_invoiced: bool
    purchase_invoiced: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CostingSummary(BaseModel):
    """Shipment-level totals in local currency."""
    total_sale: Decimal
    total_cost: Decimal
    total_gp: Decimal
    line_count: int


class ShipmentCostingsOut(BaseModel):
    items: list[CostingOut]
    totals: CostingSummary
