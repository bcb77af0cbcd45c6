"""Reports router.

Endpoints:
    GET  /api/reports/aging?kind=receivable|payable&as_of=&customer_id=
"""

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser, require_permission
from app.database import get_db
from app.schemas.statement import AgingReportOut
from app.services.statement import get_aging

router = APIRouter()


@router.get("/aging", response_model=AgingReportOut)
async def aging_report(
    kind: Literal["receivable", "payable"] = "receivable",
    as_of: date | None = None,
    customer_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(require_permission("reports.read")),
):
    """Unpaid documents with days since invoice date; bucketing is up to the caller."""
    return await get_aging(db, kind, as_of, customer_id)
