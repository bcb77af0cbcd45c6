import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.middleware.exceptions import register_exception_handlers
from app.routers import (
    containers,
    costings,
    customers,
    health,
    invoices,
    parties,
    purchase_invoices,
    reference,
    reports,
    shipments,
)
from app.utils.cache import close_redis

logger = logging.getLogger("freightops")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan: release the shared Redis pool on shutdown."""
    logger.info("FreightOps API starting (base currency %s)", settings.base_currency)
    try:
        yield
    finally:
        await close_redis()
        logger.info("FreightOps API stopped")


app = FastAPI(
    title="FreightOps",
    description="Shipment costing, invoicing and financial reconciliation",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(reference.router, prefix="/api/reference", tags=["reference"])
app.include_router(customers.router, prefix="/api/customers", tags=["customers"])

# Shipment-scoped resources share the /api/shipments prefix
app.include_router(shipments.router, prefix="/api/shipments", tags=["shipments"])
app.include_router(parties.router, prefix="/api/shipments", tags=["parties"])
app.include_router(containers.router, prefix="/api/shipments", tags=["containers"])
app.include_router(costings.router, prefix="/api/shipments", tags=["costings"])

app.include_router(invoices.router, prefix="/api/invoices", tags=["invoices"])
app.include_router(
    purchase_invoices.router, prefix="/api/purchase-invoices", tags=["purchase-invoices"]
)
app.include_router(reports.router, prefix="/api/reports", tags=["reports"])
