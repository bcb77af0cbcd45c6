"""Customer master router.

Endpoints:
    POST  /api/customers                        Create customer / vendor
    GET   /api/customers                        List (filter by master type, search)
    GET   /api/customers/{customer_id}          Detail
    PUT   /api/customers/{customer_id}          Update
    GET   /api/customers/{customer_id}/statement  Statement of account
    POST  /api/customers/{customer_id}/receipts   On-account receipt
"""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser, require_permission
from app.database import get_db
from app.models.customer import Customer
from app.models.enums import MasterType
from app.schemas.common import PaginatedResponse
from app.schemas.customer import CustomerCreate, CustomerOut, CustomerUpdate
from app.schemas.invoice import PaymentCreate, ReceiptOut
from app.schemas.statement import StatementOut
from app.services.common import get_or_404
from app.services.invoicing import record_on_account_receipt
from app.services.statement import get_statement
from app.utils.activity import log_activity

router = APIRouter()


# ── POST /api/customers ──────────────────────────────────────

@router.post("", response_model=CustomerOut, status_code=201)
async def create_customer(
    body: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    customer = Customer(**body.model_dump())
    db.add(customer)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="customer",
        entity_id=customer.id,
        entity_code=customer.code,
        summary=f"Created {customer.master_type.value} {customer.name}",
    )
    return CustomerOut.model_validate(customer)


# ── GET /api/customers ───────────────────────────────────────

@router.get("", response_model=PaginatedResponse[CustomerOut])
async def list_customers(
    master_type: MasterType | None = None,
    search: str | None = None,
    limit: int = Query(50, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("shipment.read")),
):
    base = select(Customer)
    if master_type:
        base = base.where(Customer.master_type == master_type)
    if search:
        pattern = f"%{search}%"
        base = base.where(or_(Customer.name.ilike(pattern), Customer.code.ilike(pattern)))

    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(base.order_by(Customer.name).limit(limit).offset(offset))
    return PaginatedResponse(
        items=[CustomerOut.model_validate(c) for c in result.scalars().all()],
        total=total or 0,
        limit=limit,
        offset=offset,
    )


# ── GET /api/customers/{customer_id} ─────────────────────────

@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer(
    customer_id: str,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("shipment.read")),
):
    return CustomerOut.model_validate(await get_or_404(db, Customer, customer_id, "Customer"))


# ── PUT /api/customers/{customer_id} ─────────────────────────

@router.put("/{customer_id}", response_model=CustomerOut)
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("shipment.write")),
):
    customer = await get_or_404(db, Customer, customer_id, "Customer")
    updates = body.model_dump(exclude_unset=True)
    for field_name, value in updates.items():
        setattr(customer, field_name, value)
    await db.flush()

    await log_activity(
        db, user,
        action="updated",
        entity_type="customer",
        entity_id=customer.id,
        entity_code=customer.code,
        summary=f"Updated {', '.join(sorted(updates)) or 'nothing'}",
    )
    return CustomerOut.model_validate(customer)


# ── GET /api/customers/{customer_id}/statement ───────────────

@router.get("/{customer_id}/statement", response_model=StatementOut)
async def customer_statement(
    customer_id: str,
    from_date: date | None = None,
    to_date: date | None = None,
    opening_balance: Decimal | None = None,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("reports.read")),
):
    """Running-balance statement; ``opening_balance`` overrides the stored one."""
    return await get_statement(db, customer_id, from_date, to_date, opening_balance)


# ── POST /api/customers/{customer_id}/receipts ───────────────

@router.post("/{customer_id}/receipts", response_model=ReceiptOut, status_code=201)
async def create_on_account_receipt(
    customer_id: str,
    body: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_permission("financials.write")),
):
    receipt = await record_on_account_receipt(
        db, user, customer_id,
        amount=body.amount,
        receipt_date=body.payment_date,
        narration=body.narration,
    )
    return ReceiptOut.model_validate(receipt)
