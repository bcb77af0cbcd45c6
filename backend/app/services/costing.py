"""Costing engine: authoritative amounts for sale/cost charge lines.

    fcy        = round(qty * unit_rate, 2)
    lcy        = round(fcy * ex_rate, 2)
    tax_amount = round(lcy * tax_pct / 100, 2)
    gp         = sale_lcy - cost_lcy          (tax excluded)

Rounding is half-up on Decimal values.  Whatever the client sends for the
derived columns is discarded; they are recomputed on every add and update.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser
from app.middleware.exceptions import BusinessLogicError
from app.models.costing import ShipmentCosting
from app.models.party import ShipmentParty
from app.schemas.costing import CostingInput, CostingSummary
from app.services.common import get_or_404, lock_shipment
from app.services.guards import can_delete_costing, get_costing_locks
from app.services.reference_data import ReferenceData
from app.utils.activity import log_activity

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# Input fields copied onto the row as-is
_INPUT_FIELDS = (
    "description", "remarks", "ppcc", "unit_id",
    "sale_qty", "sale_unit", "sale_currency", "sale_ex_rate", "sale_tax_percentage",
    "bill_to_customer_id",
    "cost_qty", "cost_unit", "cost_currency", "cost_ex_rate", "cost_tax_percentage",
    "vendor_customer_id", "cost_reference_no", "cost_date",
)


def round_money(value) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class SideAmounts:
    fcy: Decimal
    lcy: Decimal
    tax_amount: Decimal


def compute_side(qty, unit_rate, ex_rate, tax_percentage) -> SideAmounts:
    fcy = round_money(Decimal(qty) * Decimal(unit_rate))
    lcy = round_money(fcy * Decimal(ex_rate))
    tax_amount = round_money(lcy * Decimal(tax_percentage) / 100)
    return SideAmounts(fcy=fcy, lcy=lcy, tax_amount=tax_amount)


def compute_costing(data: CostingInput) -> dict:
    """Column values for a costing row, derived amounts included."""
    sale = compute_side(data.sale_qty, data.sale_unit, data.sale_ex_rate, data.sale_tax_percentage)
    cost = compute_side(data.cost_qty, data.cost_unit, data.cost_ex_rate, data.cost_tax_percentage)

    values = {name: getattr(data, name) for name in _INPUT_FIELDS}
    values.update(
        sale_fcy=sale.fcy,
        sale_lcy=sale.lcy,
        sale_tax_amount=sale.tax_amount,
        cost_fcy=cost.fcy,
        cost_lcy=cost.lcy,
        cost_tax_amount=cost.tax_amount,
        gp=sale.lcy - cost.lcy,
    )
    return values


def summarize_costings(costings) -> CostingSummary:
    total_sale = sum((c.sale_lcy for c in costings), Decimal("0"))
    total_cost = sum((c.cost_lcy for c in costings), Decimal("0"))
    return CostingSummary(
        total_sale=total_sale,
        total_cost=total_cost,
        total_gp=total_sale - total_cost,
        line_count=len(costings),
    )


# ── Validation ───────────────────────────────────────────────

async def _validate_references(refs: ReferenceData, data: CostingInput) -> None:
    await refs.require_currency("sale_currency", data.sale_currency)
    await refs.require_currency("cost_currency", data.cost_currency)
    await refs.require_id("units", "unit_id", data.unit_id)


async def _validate_parties(db: AsyncSession, shipment_id: str, data: CostingInput) -> None:
    """Bill-to and vendor must be attached to the same shipment."""
    result = await db.execute(
        select(ShipmentParty.customer_id).where(ShipmentParty.shipment_id == shipment_id)
    )
    attached = set(result.scalars().all())
    for field_name in ("bill_to_customer_id", "vendor_customer_id"):
        customer_id = getattr(data, field_name)
        if customer_id is not None and customer_id not in attached:
            raise BusinessLogicError(
                f"{field_name} {customer_id} is not a party on this shipment",
                error_code="NOT_A_SHIPMENT_PARTY",
                details={"field": field_name, "value": customer_id},
            )


# ── Operations ───────────────────────────────────────────────

async def add_costing(
    db: AsyncSession,
    shipment_id: str,
    data: CostingInput,
    refs: ReferenceData,
    user: CurrentUser,
) -> ShipmentCosting:
    shipment = await lock_shipment(db, shipment_id)
    await _validate_references(refs, data)
    await _validate_parties(db, shipment_id, data)

    costing = ShipmentCosting(
        shipment_id=shipment_id,
        created_by=user.id,
        sale_invoiced=False,
        purchase_invoiced=False,
        **compute_costing(data),
    )
    db.add(costing)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="costing",
        entity_id=costing.id,
        entity_code=shipment.job_number,
        summary=f"Added costing '{costing.description}' (GP {costing.gp})",
    )
    return costing


async def update_costing(
    db: AsyncSession,
    costing_id: str,
    data: CostingInput,
    refs: ReferenceData,
    user: CurrentUser,
) -> ShipmentCosting:
    """Replace a costing's inputs and recompute its amounts.

    Invoiced costings stay editable (issued documents keep their own
    snapshot), except for the party on an invoiced side.
    """
    costing = await get_or_404(db, ShipmentCosting, costing_id, "Costing")
    shipment = await lock_shipment(db, costing.shipment_id)
    await db.refresh(costing)

    changing = {
        name for name in ("bill_to_customer_id", "vendor_customer_id")
        if getattr(data, name) != getattr(costing, name)
    }
    get_costing_locks(costing).enforce(changing)

    await _validate_references(refs, data)
    await _validate_parties(db, costing.shipment_id, data)

    for name, value in compute_costing(data).items():
        setattr(costing, name, value)
    await db.flush()

    await log_activity(
        db, user,
        action="updated",
        entity_type="costing",
        entity_id=costing.id,
        entity_code=shipment.job_number,
        summary=f"Updated costing '{costing.description}' (GP {costing.gp})",
    )
    return costing


async def delete_costing(db: AsyncSession, costing_id: str, user: CurrentUser) -> None:
    costing = await get_or_404(db, ShipmentCosting, costing_id, "Costing")
    shipment = await lock_shipment(db, costing.shipment_id)
    await db.refresh(costing)

    can_delete_costing(costing).enforce()

    await db.delete(costing)
    await db.flush()

    await log_activity(
        db, user,
        action="deleted",
        entity_type="costing",
        entity_id=costing_id,
        entity_code=shipment.job_number,
        summary=f"Deleted costing '{costing.description}'",
    )
