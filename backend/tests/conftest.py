"""Pytest configuration and fixtures for FreightOps tests.

Tests run against an in-memory SQLite database (aiosqlite) created fresh
for every test; the Redis cache is disabled unless a test enables it.
"""

import os

os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("DEBUG", "false")

from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.deps import CurrentUser
from app.auth.jwt import create_access_token
from app.auth.permissions import resolve_permissions
from app.database import Base, get_db
from app.main import app
from app.models.customer import Customer
from app.models.enums import MasterType, PartyType, ShipmentDirection, ShipmentMode
from app.models.reference import ContainerType, Currency, PackageType, Port, Unit
from app.schemas.costing import CostingInput
from app.schemas.party import PartyCreate
from app.schemas.shipment import ShipmentCreate
from app.services.costing import add_costing
from app.services.reference_data import ReferenceData
from app.services.shipments import attach_party, create_shipment


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for service-level tests; commit explicitly where needed."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """API client whose requests each get their own committed unit of work."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Principals ───────────────────────────────────────────────────

@pytest.fixture
def admin_user() -> CurrentUser:
    return CurrentUser(
        id="user-admin",
        name="Test Admin",
        office_id="AE",
        role="administrator",
        permissions=resolve_permissions("administrator"),
    )


def _headers(role: str, office_id: str = "AE") -> dict:
    token = create_access_token(
        user_id=f"user-{role}",
        role=role,
        permissions=resolve_permissions(role),
        name=f"Test {role.title()}",
        office_id=office_id,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> dict:
    return _headers("administrator")


@pytest.fixture
def headers_for():
    """Factory: bearer headers for a role, e.g. headers_for("operator")."""
    return _headers


# ── Reference & master data ──────────────────────────────────────

@dataclass
class ReferenceIds:
    unit_id: str
    container_type_id: str
    package_type_id: str
    pol_id: str
    pod_id: str


@pytest_asyncio.fixture
async def reference(db_session: AsyncSession) -> ReferenceIds:
    """Currencies AED/USD/EUR, one unit, container/package type and two ports."""
    db_session.add_all([
        Currency(code="AED", name="UAE Dirham"),
        Currency(code="USD", name="US Dollar"),
        Currency(code="EUR", name="Euro"),
    ])
    unit = Unit(code="CNTR", name="Per Container")
    container_type = ContainerType(code="40HC", name="40' High Cube")
    package_type = PackageType(code="CTN", name="Cartons")
    pol = Port(code="INNSA", name="Nhava Sheva", country="IN")
    pod = Port(code="AEJEA", name="Jebel Ali", country="AE")
    db_session.add_all([unit, container_type, package_type, pol, pod])
    await db_session.commit()
    return ReferenceIds(
        unit_id=unit.id,
        container_type_id=container_type.id,
        package_type_id=package_type.id,
        pol_id=pol.id,
        pod_id=pod.id,
    )


@pytest.fixture
def refs(db_session: AsyncSession) -> ReferenceData:
    return ReferenceData(db_session)


@dataclass
class JobSetup:
    shipment_id: str
    job_number: str
    consignee_id: str
    vendor_id: str
    consignee_party_id: str
    vendor_party_id: str


@pytest_asyncio.fixture
async def job(db_session: AsyncSession, reference, refs, admin_user) -> JobSetup:
    """An import FCL job with a consignee (bill-to) and a shipping line (vendor)."""
    consignee = Customer(
        code="C001", name="Gulf Traders LLC", master_type=MasterType.DEBTORS,
        email="accounts@gulftraders.example", credit_days=30,
    )
    vendor = Customer(
        code="V001", name="Blue Ocean Line", master_type=MasterType.CREDITORS,
        credit_days=15,
    )
    db_session.add_all([consignee, vendor])
    await db_session.flush()

    shipment = await create_shipment(
        db_session,
        ShipmentCreate(
            direction=ShipmentDirection.IMPORT,
            mode=ShipmentMode.SEA_FREIGHT_FCL,
            port_of_loading_id=reference.pol_id,
            port_of_discharge_id=reference.pod_id,
        ),
        refs,
        admin_user,
    )
    consignee_party = await attach_party(
        db_session, shipment.id,
        PartyCreate(customer_id=consignee.id, party_type=PartyType.CONSIGNEE),
        admin_user,
    )
    vendor_party = await attach_party(
        db_session, shipment.id,
        PartyCreate(customer_id=vendor.id, party_type=PartyType.SHIPPING_LINE),
        admin_user,
    )
    await db_session.commit()
    return JobSetup(
        shipment_id=shipment.id,
        job_number=shipment.job_number,
        consignee_id=consignee.id,
        vendor_id=vendor.id,
        consignee_party_id=consignee_party.id,
        vendor_party_id=vendor_party.id,
    )


def _costing_input(job: JobSetup, **overrides) -> CostingInput:
    data = dict(
        description="Ocean Freight",
        sale_qty=Decimal("1"),
        sale_unit=Decimal("250.00"),
        sale_currency="USD",
        sale_ex_rate=Decimal("3.67"),
        sale_tax_percentage=Decimal("5"),
        bill_to_customer_id=job.consignee_id,
        cost_qty=Decimal("1"),
        cost_unit=Decimal("150.00"),
        cost_currency="USD",
        cost_ex_rate=Decimal("3.67"),
        cost_tax_percentage=Decimal("0"),
        vendor_customer_id=job.vendor_id,
    )
    data.update(overrides)
    return CostingInput(**data)


@pytest.fixture
def costing_data(job):
    """Factory: ocean freight line, sale 250 USD x 3.67 (5% tax), cost 150 USD x 3.67."""

    def _build(**overrides) -> CostingInput:
        return _costing_input(job, **overrides)

    return _build


@pytest_asyncio.fixture
async def add_line(db_session: AsyncSession, refs, admin_user, job, costing_data):
    """Factory: add a committed costing line to the job and return its id."""

    async def _add(**overrides) -> str:
        costing = await add_costing(
            db_session, job.shipment_id, costing_data(**overrides), refs, admin_user,
        )
        await db_session.commit()
        return costing.id

    return _add


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "api: HTTP API tests")
    config.addinivalue_line("markers", "cache: Redis cache tests")
