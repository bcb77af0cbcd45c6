"""Initial schema: reference data, shipments, costings and billing documents.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19

Run with:
    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# Enum columns store member names, matching SAEnum(<enum class>) on the models.
# Types are created once up front since several tables share them.
shipment_status = postgresql.ENUM(
    "OPENED", "CLOSED", "CANCELLED", name="shipmentstatus", create_type=False,
)
shipment_direction = postgresql.ENUM(
    "IMPORT", "EXPORT", "CROSS_TRADE", name="shipmentdirection", create_type=False,
)
shipment_mode = postgresql.ENUM(
    "SEA_FREIGHT_FCL", "SEA_FREIGHT_LCL", "AIR_FREIGHT", "BREAK_BULK", "RORO",
    name="shipmentmode", create_type=False,
)
master_type = postgresql.ENUM(
    "DEBTORS", "CREDITORS", "NEUTRAL", name="mastertype", create_type=False,
)
party_type = postgresql.ENUM(
    "SHIPPER", "CONSIGNEE", "BUYER", "SUPPLIER", "CUSTOMER", "BOOKING_PARTY",
    "NOTIFY_PARTY", "FORWARDER", "CO_LOADER", "TRANSPORTER", "COURIER",
    "CLEARING_AGENT", "DELIVERY_AGENT", "ORIGIN_AGENT", "OVERSEAS_AGENTS",
    "SHIPPING_LINE", "AIR_LINE", "WAREHOUSE", "CFS", "TERMINAL", "CUSTOMS",
    "BANK", "NEUTRAL",
    name="partytype", create_type=False,
)
payment_status = postgresql.ENUM(
    "PENDING", "PARTIALLY_PAID", "PAID", "OVERDUE", "CLOSED",
    name="paymentstatus", create_type=False,
)
status_event_type = postgresql.ENUM(
    "GATE_OUT_EMPTY", "GATE_IN", "LOAD_ON_VESSEL", "VESSEL_DEPARTURE",
    "VESSEL_ARRIVAL", "DISCHARGE", "ON_RAIL", "OFF_RAIL", "CUSTOMS_CLEARANCE",
    "DELIVERED", "EMPTY_CONTAINER_RETURN", "OTHER",
    name="statuseventtype", create_type=False,
)

ENUM_TYPES = (
    shipment_status, shipment_direction, shipment_mode, master_type,
    party_type, payment_status, status_event_type,
)


def _reference_table(name: str, code_length: int, with_country: bool = False) -> None:
    columns = [
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("code", sa.String(code_length), nullable=False, unique=True),
        sa.Column("name", sa.String(255 if with_country else 100), nullable=False),
    ]
    if with_country:
        columns.append(sa.Column("country", sa.String(100)))
    columns.append(sa.Column("is_active", sa.Boolean(), server_default=sa.true()))
    op.create_table(name, *columns)


def _money(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(
        name, sa.Numeric(18, 2), nullable=nullable,
        server_default="0" if nullable else None,
    )


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUM_TYPES:
        enum_type.create(bind, checkfirst=True)

    # ── Reference data ───────────────────────────────────────

    _reference_table("currencies", 3)
    _reference_table("units", 20)
    _reference_table("package_types", 20)
    _reference_table("container_types", 20)
    _reference_table("ports", 10, with_country=True)

    op.create_table(
        "customers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("code", sa.String(20), nullable=False, unique=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("master_type", master_type, nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(100)),
        sa.Column("country", sa.String(100)),
        sa.Column("address", sa.Text()),
        sa.Column("tax_no", sa.String(50)),
        sa.Column("base_currency", sa.String(3)),
        sa.Column("credit_days", sa.Integer()),
        _money("opening_balance"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    # ── Shipment execution ───────────────────────────────────

    op.create_table(
        "shipments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("job_number", sa.String(50), nullable=False, unique=True, index=True),
        sa.Column("office_id", sa.String(20), nullable=False, index=True),
        sa.Column("job_date", sa.Date(), nullable=False),
        sa.Column("job_status", shipment_status, index=True),
        sa.Column("direction", shipment_direction, nullable=False),
        sa.Column("mode", shipment_mode, nullable=False),
        sa.Column("incoterms", sa.String(10)),
        sa.Column("hbl_no", sa.String(100)),
        sa.Column("hbl_date", sa.Date()),
        sa.Column("mbl_no", sa.String(100)),
        sa.Column("mbl_date", sa.Date()),
        sa.Column("port_of_loading_id", sa.String(36), sa.ForeignKey("ports.id")),
        sa.Column("port_of_discharge_id", sa.String(36), sa.ForeignKey("ports.id")),
        sa.Column("place_of_receipt", sa.String(255)),
        sa.Column("place_of_delivery", sa.String(255)),
        sa.Column("carrier", sa.String(255)),
        sa.Column("vessel", sa.String(255)),
        sa.Column("voyage", sa.String(50)),
        sa.Column("etd", sa.Date()),
        sa.Column("eta", sa.Date()),
        sa.Column("notes", sa.Text()),
        sa.Column("internal_notes", sa.Text()),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "shipment_status_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("shipment_id", sa.String(36), sa.ForeignKey("shipments.id"),
                  nullable=False, index=True),
        sa.Column("event_type", status_event_type),
        sa.Column("status_date", sa.DateTime(), nullable=False),
        sa.Column("description", sa.String(255)),
        sa.Column("remarks", sa.Text()),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "shipment_parties",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("shipment_id", sa.String(36), sa.ForeignKey("shipments.id"),
                  nullable=False, index=True),
        sa.Column("customer_id", sa.String(36), sa.ForeignKey("customers.id"),
                  nullable=False, index=True),
        sa.Column("party_type", party_type, nullable=False),
        sa.Column("master_type", master_type, nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(100)),
        sa.Column("mobile", sa.String(100)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("shipment_id", "customer_id", "party_type",
                            name="uq_shipment_party_category"),
    )

    op.create_table(
        "shipment_containers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("shipment_id", sa.String(36), sa.ForeignKey("shipments.id"),
                  nullable=False, index=True),
        sa.Column("container_number", sa.String(20), nullable=False),
        sa.Column("container_type_id", sa.String(36), sa.ForeignKey("container_types.id")),
        sa.Column("seal_no", sa.String(100)),
        sa.Column("no_of_pcs", sa.Integer(), server_default="0"),
        sa.Column("package_type_id", sa.String(36), sa.ForeignKey("package_types.id")),
        sa.Column("gross_weight", sa.Numeric(18, 3), server_default="0"),
        sa.Column("volume", sa.Numeric(18, 3), server_default="0"),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "shipment_cargos",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("shipment_id", sa.String(36), sa.ForeignKey("shipments.id"),
                  nullable=False, index=True),
        sa.Column("quantity", sa.Integer(), server_default="0"),
        sa.Column("load_type", sa.String(50)),
        sa.Column("total_cbm", sa.Numeric(18, 3)),
        sa.Column("total_weight", sa.Numeric(18, 3)),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    # ── Costing ──────────────────────────────────────────────

    op.create_table(
        "shipment_costings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("shipment_id", sa.String(36), sa.ForeignKey("shipments.id"),
                  nullable=False, index=True),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("remarks", sa.Text()),
        sa.Column("ppcc", sa.String(20)),
        sa.Column("unit_id", sa.String(36), sa.ForeignKey("units.id")),
        sa.Column("sale_qty", sa.Numeric(18, 3), server_default="0"),
        sa.Column("sale_unit", sa.Numeric(18, 4), server_default="0"),
        sa.Column("sale_currency", sa.String(3), nullable=False),
        sa.Column("sale_ex_rate", sa.Numeric(18, 6), server_default="1"),
        _money("sale_fcy"),
        _money("sale_lcy"),
        sa.Column("sale_tax_percentage", sa.Numeric(5, 2), server_default="0"),
        _money("sale_tax_amount"),
        sa.Column("bill_to_customer_id", sa.String(36), sa.ForeignKey("customers.id"),
                  index=True),
        sa.Column("cost_qty", sa.Numeric(18, 3), server_default="0"),
        sa.Column("cost_unit", sa.Numeric(18, 4), server_default="0"),
        sa.Column("cost_currency", sa.String(3), nullable=False),
        sa.Column("cost_ex_rate", sa.Numeric(18, 6), server_default="1"),
        _money("cost_fcy"),
        _money("cost_lcy"),
        sa.Column("cost_tax_percentage", sa.Numeric(5, 2), server_default="0"),
        _money("cost_tax_amount"),
        sa.Column("vendor_customer_id", sa.String(36), sa.ForeignKey("customers.id"),
                  index=True),
        sa.Column("cost_reference_no", sa.String(100)),
        sa.Column("cost_date", sa.Date()),
        _money("gp"),
        sa.Column("sale_invoiced", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("purchase_invoiced", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    # ── Billing documents ────────────────────────────────────

    for table, number_col, party_col, extra_cols in (
        ("invoices", "invoice_number", "customer_id", []),
        ("purchase_invoices", "purchase_number", "vendor_id", [
            sa.Column("vendor_invoice_no", sa.String(100)),
            sa.Column("vendor_invoice_date", sa.Date()),
        ]),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column(number_col, sa.String(50), nullable=False, unique=True, index=True),
            sa.Column("office_id", sa.String(20), nullable=False, index=True),
            sa.Column("shipment_id", sa.String(36), sa.ForeignKey("shipments.id"),
                      nullable=False, index=True),
            sa.Column(party_col, sa.String(36), sa.ForeignKey("customers.id"),
                      nullable=False, index=True),
            *extra_cols,
            sa.Column("invoice_date", sa.Date(), nullable=False, index=True),
            sa.Column("due_date", sa.Date()),
            sa.Column("currency", sa.String(3), nullable=False),
            _money("sub_total", nullable=False),
            _money("total_tax"),
            _money("amount", nullable=False),
            _money("paid_amount"),
            _money("balance_amount", nullable=False),
            sa.Column("payment_status", payment_status, index=True),
            sa.Column("remarks", sa.Text()),
            sa.Column("created_by", sa.String(36)),
            sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        )

    for table, parent_col, parent_table in (
        ("invoice_lines", "invoice_id", "invoices"),
        ("purchase_invoice_lines", "purchase_invoice_id", "purchase_invoices"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column(parent_col, sa.String(36),
                      sa.ForeignKey(f"{parent_table}.id", ondelete="CASCADE"),
                      nullable=False, index=True),
            sa.Column("costing_id", sa.String(36), sa.ForeignKey("shipment_costings.id"),
                      index=True),
            sa.Column("line_no", sa.Integer(), nullable=False),
            sa.Column("charge_details", sa.String(255), nullable=False),
            sa.Column("basis", sa.String(100)),
            sa.Column("ppcc", sa.String(20)),
            sa.Column("currency", sa.String(3), nullable=False),
            sa.Column("rate", sa.Numeric(18, 4), nullable=False),
            sa.Column("quantity", sa.Numeric(18, 3), nullable=False),
            sa.Column("roe", sa.Numeric(18, 6), nullable=False),
            _money("fcy_amount", nullable=False),
            sa.Column("tax_percentage", sa.Numeric(5, 2), server_default="0"),
            _money("tax_amount"),
            _money("amount", nullable=False),
        )

    # ── Money movements ──────────────────────────────────────

    op.create_table(
        "receipts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("receipt_number", sa.String(50), nullable=False, unique=True, index=True),
        sa.Column("office_id", sa.String(20), nullable=False),
        sa.Column("customer_id", sa.String(36), sa.ForeignKey("customers.id"),
                  nullable=False, index=True),
        sa.Column("invoice_id", sa.String(36), sa.ForeignKey("invoices.id"), index=True),
        sa.Column("receipt_date", sa.Date(), nullable=False, index=True),
        _money("amount", nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("narration", sa.Text()),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "payment_vouchers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("voucher_number", sa.String(50), nullable=False, unique=True, index=True),
        sa.Column("office_id", sa.String(20), nullable=False),
        sa.Column("vendor_id", sa.String(36), sa.ForeignKey("customers.id"),
                  nullable=False, index=True),
        sa.Column("purchase_invoice_id", sa.String(36),
                  sa.ForeignKey("purchase_invoices.id"), index=True),
        sa.Column("payment_date", sa.Date(), nullable=False, index=True),
        _money("amount", nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("narration", sa.Text()),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    # ── Numbering & audit ────────────────────────────────────

    op.create_table(
        "document_sequences",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("office_id", sa.String(20), nullable=False),
        sa.Column("kind", sa.String(30), nullable=False),
        sa.Column("prefix", sa.String(50), nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("office_id", "kind", "prefix", name="uq_document_sequence"),
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False, index=True),
        sa.Column("user_name", sa.String(200), nullable=False),
        sa.Column("action", sa.String(50), nullable=False, index=True),
        sa.Column("entity_type", sa.String(50), nullable=False, index=True),
        sa.Column("entity_id", sa.String(36)),
        sa.Column("entity_code", sa.String(100)),
        sa.Column("summary", sa.Text()),
        sa.Column("details", sa.JSON()),
        sa.Column("created_at", sa.DateTime(), nullable=False,
                  server_default=sa.func.now(), index=True),
    )


def downgrade() -> None:
    for table in (
        "activity_logs", "document_sequences", "payment_vouchers", "receipts",
        "purchase_invoice_lines", "invoice_lines", "purchase_invoices", "invoices",
        "shipment_costings", "shipment_cargos", "shipment_containers",
        "shipment_parties", "shipment_status_logs", "shipments", "customers",
        "ports", "container_types", "package_types", "units", "currencies",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in reversed(ENUM_TYPES):
        enum_type.drop(bind, checkfirst=True)
