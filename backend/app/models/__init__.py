"""Aggregate model imports for Alembic auto-detection."""

# Reference & master data
from app.models.reference import (  # noqa: F401
    ContainerType, Currency, PackageType, Port, Unit,
)
from app.models.customer import Customer  # noqa: F401

# Shipment execution
from app.models.shipment import Shipment, ShipmentStatusLog  # noqa: F401
from app.models.party import ShipmentParty  # noqa: F401
from app.models.container import ShipmentCargo, ShipmentContainer  # noqa: F401

# Financial
from app.models.costing import ShipmentCosting  # noqa: F401
from app.models.invoice import Invoice, InvoiceLine  # noqa: F401
from app.models.purchase_invoice import PurchaseInvoice, PurchaseInvoiceLine  # noqa: F401
from app.models.receipt import PaymentVoucher, Receipt  # noqa: F401
from app.models.document_sequence import DocumentSequence  # noqa: F401

# Audit
from app.models.activity_log import ActivityLog  # noqa: F401
