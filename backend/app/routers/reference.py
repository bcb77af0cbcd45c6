"""Reference lookups router.

Endpoints:
    GET   /api/reference/{lookup}      List active currencies, units, package-types,
                                       container-types or ports
    POST  /api/reference/{lookup}      Add a lookup entry (office bootstrap)
    POST  /api/reference/refresh       Drop cached lookups
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser, get_current_user, require_permission
from app.database import get_db
from app.schemas.reference import ReferenceItemCreate, ReferenceItemOut
from app.services.reference_data import REFERENCE_MODELS, ReferenceData, get_reference_data

router = APIRouter()


def _model_for(lookup: str):
    model = REFERENCE_MODELS.get(lookup)
    if model is None:
        raise HTTPException(status_code=404, detail=f"Unknown lookup: {lookup}")
    return model


# ── POST /api/reference/refresh ──────────────────────────────

@router.post("/refresh", status_code=status.HTTP_204_NO_CONTENT)
async def refresh_reference_data(
    refs: ReferenceData = Depends(get_reference_data),
    _user: CurrentUser = Depends(require_permission("reference.manage")),
):
    await refs.refresh()


# ── GET /api/reference/{lookup} ──────────────────────────────

@router.get("/{lookup}", response_model=list[ReferenceItemOut])
async def list_reference(
    lookup: str,
    refs: ReferenceData = Depends(get_reference_data),
    _user: CurrentUser = Depends(get_current_user),
):
    _model_for(lookup)
    return await refs.lookup(lookup)


# ── POST /api/reference/{lookup} ─────────────────────────────

@router.post("/{lookup}", response_model=ReferenceItemOut, status_code=201)
async def create_reference(
    lookup: str,
    body: ReferenceItemCreate,
    db: AsyncSession = Depends(get_db),
    refs: ReferenceData = Depends(get_reference_data),
    _user: CurrentUser = Depends(require_permission("reference.manage")),
):
    model = _model_for(lookup)
    data = body.model_dump(exclude_none=True)
    if not hasattr(model, "country"):
        data.pop("country", None)
    if lookup == "currencies":
        data["code"] = data["code"].upper()

    item = model(**data)
    db.add(item)
    await db.flush()
    await refs.refresh()
    return ReferenceItemOut.model_validate(item)
