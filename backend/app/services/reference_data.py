"""Reference data repository: read-only lookups with an explicit refresh.

Injected per request via ``get_reference_data``.  List loads are cached in
Redis under ``reference:*``; ``refresh()`` drops those keys so the next
load reads the database again.  Nothing here is module-global state.
"""

import logging

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.middleware.exceptions import ReferenceDataError
from app.models.reference import ContainerType, Currency, PackageType, Port, Unit
from app.schemas.reference import ReferenceItemOut
from app.utils.cache import cached, invalidate_cache

logger = logging.getLogger(__name__)

# Lookup name (URL segment) → model
REFERENCE_MODELS = {
    "currencies": Currency,
    "units": Unit,
    "package-types": PackageType,
    "container-types": ContainerType,
    "ports": Port,
}


class ReferenceData:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, model) -> list[dict]:
        result = await self.db.execute(
            select(model).where(model.is_active == True).order_by(model.code)  # noqa: E712
        )
        return [
            ReferenceItemOut.model_validate(row).model_dump(mode="json")
            for row in result.scalars().all()
        ]

    @cached(ttl=settings.reference_cache_ttl, prefix="reference")
    async def currencies(self) -> list[dict]:
        return await self._load(Currency)

    @cached(ttl=settings.reference_cache_ttl, prefix="reference")
    async def units(self) -> list[dict]:
        return await self._load(Unit)

    @cached(ttl=settings.reference_cache_ttl, prefix="reference")
    async def package_types(self) -> list[dict]:
        return await self._load(PackageType)

    @cached(ttl=settings.reference_cache_ttl, prefix="reference")
    async def container_types(self) -> list[dict]:
        return await self._load(ContainerType)

    @cached(ttl=settings.reference_cache_ttl, prefix="reference")
    async def ports(self) -> list[dict]:
        return await self._load(Port)

    async def lookup(self, name: str) -> list[dict]:
        loader = {
            "currencies": self.currencies,
            "units": self.units,
            "package-types": self.package_types,
            "container-types": self.container_types,
            "ports": self.ports,
        }[name]
        return await loader()

    async def refresh(self) -> None:
        await invalidate_cache("reference:*")
        logger.info("Reference data cache refreshed")

    # ── Resolution checks (raise UNKNOWN_REFERENCE) ─────────

    async def require_currency(self, field: str, code: str) -> None:
        if not any(c["code"] == code for c in await self.currencies()):
            raise ReferenceDataError(field, code)

    async def require_id(self, name: str, field: str, value: str | None) -> None:
        if value is None:
            return
        if not any(item["id"] == value for item in await self.lookup(name)):
            raise ReferenceDataError(field, value)


async def get_reference_data(db: AsyncSession = Depends(get_db)) -> ReferenceData:
    return ReferenceData(db)
