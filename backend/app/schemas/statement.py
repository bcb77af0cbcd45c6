"""Pydantic schemas for the statement of account and aging report."""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel

from app.models.enums import PaymentStatus


class StatementEntry(BaseModel):
    entry_type: Literal["opening", "invoice", "receipt"]
    entry_date: date | None
    document_no: str | None
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


class StatementOut(BaseModel):
    customer_id: str
    customer_code: str
    customer_name: str
    from_date: date | None
    to_date: date | None
    currency: str
    opening_balance: Decimal
    entries: list[StatementEntry]
    total_debit: Decimal
    total_credit: Decimal
    net_outstanding_receivable: Decimal


class AgingRow(BaseModel):
    document_id: str
    document_no: str
    party_id: str
    party_name: str
    shipment_id: str
    invoice_date: date
    due_date: date | None
    amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    payment_status: PaymentStatus
    aging_days: int


class AgingReportOut(BaseModel):
    kind: Literal["receivable", "payable"]
    as_of: date
    currency: str
    rows: list[AgingRow]
    total_balance: Decimal
