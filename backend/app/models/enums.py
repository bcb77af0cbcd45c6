"""Closed status vocabularies shared by models, schemas and services."""

import enum


class ShipmentStatus(str, enum.Enum):
    OPENED = "Opened"
    CLOSED = "Closed"
    CANCELLED = "Cancelled"


class ShipmentDirection(str, enum.Enum):
    IMPORT = "Import"
    EXPORT = "Export"
    CROSS_TRADE = "CrossTrade"


class ShipmentMode(str, enum.Enum):
    SEA_FREIGHT_FCL = "SeaFreightFCL"
    SEA_FREIGHT_LCL = "SeaFreightLCL"
    AIR_FREIGHT = "AirFreight"
    BREAK_BULK = "BreakBulk"
    RORO = "RoRo"


class MasterType(str, enum.Enum):
    DEBTORS = "Debtors"
    CREDITORS = "Creditors"
    NEUTRAL = "Neutral"


class PartyType(str, enum.Enum):
    SHIPPER = "Shipper"
    CONSIGNEE = "Consignee"
    BUYER = "Buyer"
    SUPPLIER = "Supplier"
    CUSTOMER = "Customer"
    BOOKING_PARTY = "BookingParty"
    NOTIFY_PARTY = "NotifyParty"
    FORWARDER = "Forwarder"
    CO_LOADER = "CoLoader"
    TRANSPORTER = "Transporter"
    COURIER = "Courier"
    CLEARING_AGENT = "ClearingAgent"
    DELIVERY_AGENT = "DeliveryAgent"
    ORIGIN_AGENT = "OriginAgent"
    OVERSEAS_AGENTS = "OverseasAgents"
    SHIPPING_LINE = "ShippingLine"
    AIR_LINE = "AirLine"
    WAREHOUSE = "Warehouse"
    CFS = "CFS"
    TERMINAL = "Terminal"
    CUSTOMS = "Customs"
    BANK = "Bank"
    NEUTRAL = "Neutral"


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    PARTIALLY_PAID = "PartiallyPaid"
    PAID = "Paid"
    OVERDUE = "Overdue"
    CLOSED = "Closed"


class StatusEventType(str, enum.Enum):
    GATE_OUT_EMPTY = "GateOutEmpty"
    GATE_IN = "GateIn"
    LOAD_ON_VESSEL = "LoadOnVessel"
    VESSEL_DEPARTURE = "VesselDeparture"
    VESSEL_ARRIVAL = "VesselArrival"
    DISCHARGE = "Discharge"
    ON_RAIL = "OnRail"
    OFF_RAIL = "OffRail"
    CUSTOMS_CLEARANCE = "CustomsClearance"
    DELIVERED = "Delivered"
    EMPTY_CONTAINER_RETURN = "EmptyContainerReturn"
    OTHER = "Other"


class BillingSide(str, enum.Enum):
    """Which half of a costing line a billing document draws from."""
    SALE = "sale"
    COST = "cost"
