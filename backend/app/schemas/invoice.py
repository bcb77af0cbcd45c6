"""Pydantic schemas for invoices, purchase invoices and their payments.

``payment_status`` on every outgoing document is the display status:
the stored status with the overdue overlay applied for today.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.enums import PaymentStatus
from app.schemas.validators import validate_unique_ids
from app.services.payment_status import derive_payment_status


# ── Generate / edit ──────────────────────────────────────────

class InvoiceCreate(BaseModel):
    shipment_id: str
    customer_id: str
    costing_ids: list[str] = Field(..., min_length=1)
    invoice_date: date | None = None  # defaults to today
    due_date: date | None = None      # defaults to invoice_date + credit days
    remarks: str | None = None

    @field_validator("costing_ids")
    @classmethod
    def unique_ids(cls, v: list[str]) -> list[str]:
        return validate_unique_ids(v)


class PurchaseInvoiceCreate(BaseModel):
    shipment_id: str
    vendor_id: str
    costing_ids: list[str] = Field(..., min_length=1)
    invoice_date: date | None = None
    due_date: date | None = None
    vendor_invoice_no: str | None = Field(None, max_length=100)
    vendor_invoice_date: date | None = None
    remarks: str | None = None

    @field_validator("costing_ids")
    @classmethod
    def unique_ids(cls, v: list[str]) -> list[str]:
        return validate_unique_ids(v)


class DocumentUpdate(BaseModel):
    """Edit the costing selection (and header fields) of an issued document."""
    costing_ids: list[str] = Field(..., min_length=1)
    invoice_date: date | None = None
    due_date: date | None = None
    vendor_invoice_no: str | None = Field(None, max_length=100)  # purchase only
    vendor_invoice_date: date | None = None
    remarks: str | None = None

    @field_validator("costing_ids")
    @classmethod
    def unique_ids(cls, v: list[str]) -> list[str]:
        return validate_unique_ids(v)


# ── Lines & documents ────────────────────────────────────────

class DocumentLineOut(BaseModel):
    id: str
    costing_id: str | None
    line_no: int
    charge_details: str
    basis: str | None
    ppcc: str | None
    currency: str
    rate: Decimal
    quantity: Decimal
    roe: Decimal
    fcy_amount: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    amount: Decimal

    model_config = {"from_attributes": True}


class _DocumentOut(BaseModel):
    id: str
    office_id: str
    shipment_id: str
    invoice_date: date
    due_date: date | None
    currency: str
    sub_total: Decimal
    total_tax: Decimal
    amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    payment_status: PaymentStatus
    remarks: str | None
    lines: list[DocumentLineOut] = []
    created_at: datetime

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def overlay_overdue(self):
        self.payment_status = derive_payment_status(
            self.amount,
            self.paid_amount,
            due_date=self.due_date,
            today=date.today(),
            closed=self.payment_status == PaymentStatus.CLOSED,
        )
        return self


class InvoiceOut(_DocumentOut):
    invoice_number: str
    customer_id: str


class PurchaseInvoiceOut(_DocumentOut):
    purchase_number: str
    vendor_id: str
    vendor_invoice_no: str | None
    vendor_invoice_date: date | None


class ShipmentDocumentsOut(BaseModel):
    invoices: list[InvoiceOut]
    purchase_invoices: list[PurchaseInvoiceOut]


# ── Payments ─────────────────────────────────────────────────

class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_date: date | None = None  # defaults to today
    narration: str | None = None


class ReceiptOut(BaseModel):
    id: str
    receipt_number: str
    customer_id: str
    invoice_id: str | None
    receipt_date: date
    amount: Decimal
    currency: str
    narration: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentVoucherOut(BaseModel):
    id: str
    voucher_number: str
    vendor_id: str
    purchase_invoice_id: str | None
    payment_date: date
    amount: Decimal
    currency: str
    narration: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class InvoicePaymentResult(BaseModel):
    invoice: InvoiceOut
    receipt: ReceiptOut


class PurchaseInvoicePaymentResult(BaseModel):
    purchase_invoice: PurchaseInvoiceOut
    payment: PaymentVoucherOut
