"""Pydantic schemas for reference lookups."""

from pydantic import BaseModel, Field


class ReferenceItemCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    country: str | None = None  # ports only


class ReferenceItemOut(BaseModel):
    id: str
    code: str
    name: str
    country: str | None = None
    is_active: bool = True

    model_config = {"from_attributes": True}
