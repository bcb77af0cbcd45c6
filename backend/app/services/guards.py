"""Deletion guards and costing field locks.

Guard predicates return a GuardResult describing whether a delete may
proceed, without raising.  Routers expose the result as-is on the
``delete-check`` endpoints and call ``enforce()`` on the DELETE path,
which turns a refusal into a 409 carrying the same result.

Field locks follow the same shape: ``get_costing_locks`` reports which
costing fields an issued document has frozen; the caller decides whether
the fields being updated collide with them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import FieldLockedError, GuardViolationError
from app.models.costing import ShipmentCosting
from app.models.invoice import Invoice
from app.models.party import ShipmentParty
from app.models.purchase_invoice import PurchaseInvoice


# ── Data structures ────────────────────────────────────────────


@dataclass
class GuardResult:
    allowed: bool
    reason: str | None = None
    code: str | None = None

    @classmethod
    def ok(cls) -> GuardResult:
        return cls(allowed=True)

    @classmethod
    def blocked(cls, code: str, reason: str) -> GuardResult:
        return cls(allowed=False, reason=reason, code=code)

    def enforce(self) -> None:
        if not self.allowed:
            raise GuardViolationError(self.code or "DELETE_BLOCKED", self.reason or "")


@dataclass
class FieldLock:
    """A single locked field with reason and unlock instructions."""
    field: str
    reason: str
    unlock_hint: str


@dataclass
class LockInfo:
    """Lock state for an entity.  Empty locked_fields means nothing locked."""
    locked_fields: dict[str, FieldLock] = field(default_factory=dict)

    def check_update(self, updating_fields: set[str]) -> FieldLock | None:
        """Return the first FieldLock that conflicts, or None."""
        for f in sorted(updating_fields):
            if f in self.locked_fields:
                return self.locked_fields[f]
        return None

    def enforce(self, updating_fields: set[str]) -> None:
        conflict = self.check_update(updating_fields)
        if conflict:
            raise FieldLockedError(conflict.field, conflict.reason, conflict.unlock_hint)


# ── Party ──────────────────────────────────────────────────────


async def can_delete_party(db: AsyncSession, party: ShipmentParty) -> GuardResult:
    """Blocked while costings on the shipment bill to / pay this customer.

    A customer attached under several categories may lose all but one
    attachment freely; only the last one is guarded.
    """
    other_attachments = await db.scalar(
        select(func.count(ShipmentParty.id)).where(
            ShipmentParty.shipment_id == party.shipment_id,
            ShipmentParty.customer_id == party.customer_id,
            ShipmentParty.id != party.id,
        )
    )
    if other_attachments:
        return GuardResult.ok()

    dependent = await db.scalar(
        select(func.count(ShipmentCosting.id)).where(
            ShipmentCosting.shipment_id == party.shipment_id,
            or_(
                ShipmentCosting.bill_to_customer_id == party.customer_id,
                ShipmentCosting.vendor_customer_id == party.customer_id,
            ),
        )
    )
    if not dependent:
        return GuardResult.ok()

    noun = "costing" if dependent == 1 else "costings"
    return GuardResult.blocked(
        "DEPENDENT_COSTINGS_EXIST",
        f"{party.customer_name} has {dependent} dependent {noun} on this shipment; "
        f"reassign or delete {'it' if dependent == 1 else 'them'} first",
    )


# ── Costing ────────────────────────────────────────────────────


def can_delete_costing(costing: ShipmentCosting) -> GuardResult:
    sides = []
    if costing.sale_invoiced:
        sides.append("sale side (invoice)")
    if costing.purchase_invoiced:
        sides.append("cost side (purchase invoice)")
    if not sides:
        return GuardResult.ok()
    return GuardResult.blocked(
        "DEPENDENT_INVOICE_EXISTS",
        f"Costing '{costing.description}' is already billed on the "
        f"{' and '.join(sides)}; delete the document first",
    )


def get_costing_locks(costing: ShipmentCosting) -> LockInfo:
    """Parties on an invoiced side cannot change under the issued document."""
    info = LockInfo()
    if costing.sale_invoiced:
        info.locked_fields["bill_to_customer_id"] = FieldLock(
            field="bill_to_customer_id",
            reason="sale side is invoiced",
            unlock_hint="Remove the line from its invoice first.",
        )
    if costing.purchase_invoiced:
        info.locked_fields["vendor_customer_id"] = FieldLock(
            field="vendor_customer_id",
            reason="cost side is on a purchase invoice",
            unlock_hint="Remove the line from its purchase invoice first.",
        )
    return info


# ── Billing documents ──────────────────────────────────────────


def can_delete_document(document, label: str = "Invoice") -> GuardResult:
    """Invoices and purchase invoices are deletable only while unpaid."""
    if document.paid_amount and document.paid_amount > 0:
        return GuardResult.blocked(
            "PAYMENTS_APPLIED",
            f"{label} has {document.paid_amount} paid against it and cannot be deleted",
        )
    return GuardResult.ok()


def can_delete_invoice(invoice: Invoice) -> GuardResult:
    return can_delete_document(invoice, "Invoice")


def can_delete_purchase_invoice(purchase_invoice: PurchaseInvoice) -> GuardResult:
    return can_delete_document(purchase_invoice, "Purchase invoice")


# ── Shipment ───────────────────────────────────────────────────


async def can_delete_shipment(db: AsyncSession, shipment_id: str) -> GuardResult:
    """Shipments with any financial record are closed or cancelled instead."""
    costings = await db.scalar(
        select(func.count(ShipmentCosting.id)).where(ShipmentCosting.shipment_id == shipment_id)
    )
    invoices = await db.scalar(
        select(func.count(Invoice.id)).where(Invoice.shipment_id == shipment_id)
    )
    purchases = await db.scalar(
        select(func.count(PurchaseInvoice.id)).where(PurchaseInvoice.shipment_id == shipment_id)
    )
    if costings or invoices or purchases:
        return GuardResult.blocked(
            "SHIPMENT_HAS_FINANCIALS",
            f"Shipment has {costings} costings, {invoices} invoices and "
            f"{purchases} purchase invoices; close or cancel it instead",
        )
    return GuardResult.ok()
