"""Management CLI for an office installation.

Usage:
    python -m app.cli seed-reference      # Insert the starter currencies, units and types
    python -m app.cli clear-cache         # Drop every cached reference lookup
"""

import asyncio
import sys

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.reference import ContainerType, Currency, PackageType, Port, Unit
from app.utils.cache import close_redis, invalidate_cache

SEED_DATA = {
    Currency: [
        {"code": "AED", "name": "UAE Dirham"},
        {"code": "USD", "name": "US Dollar"},
        {"code": "EUR", "name": "Euro"},
        {"code": "GBP", "name": "Pound Sterling"},
        {"code": "INR", "name": "Indian Rupee"},
    ],
    Unit: [
        {"code": "BL", "name": "Per B/L"},
        {"code": "CNTR", "name": "Per Container"},
        {"code": "CBM", "name": "Per CBM"},
        {"code": "KG", "name": "Per KG"},
        {"code": "SHPT", "name": "Per Shipment"},
    ],
    PackageType: [
        {"code": "CTN", "name": "Cartons"},
        {"code": "PLT", "name": "Pallets"},
        {"code": "BAG", "name": "Bags"},
    ],
    ContainerType: [
        {"code": "20GP", "name": "20' General Purpose"},
        {"code": "40GP", "name": "40' General Purpose"},
        {"code": "40HC", "name": "40' High Cube"},
        {"code": "20RF", "name": "20' Reefer"},
    ],
    Port: [
        {"code": "AEJEA", "name": "Jebel Ali", "country": "AE"},
        {"code": "INNSA", "name": "Nhava Sheva", "country": "IN"},
        {"code": "NLRTM", "name": "Rotterdam", "country": "NL"},
        {"code": "CNSHA", "name": "Shanghai", "country": "CN"},
    ],
}


def seed_reference():
    """Insert any missing seed rows; existing codes are left untouched."""
    engine = create_engine(settings.database_url_sync)
    with Session(engine) as session:
        for model, rows in SEED_DATA.items():
            existing = set(session.scalars(select(model.code)))
            added = 0
            for row in rows:
                if row["code"] in existing:
                    continue
                session.add(model(**row))
                added += 1
            print(f"  {model.__tablename__}: {added} added, {len(existing)} existing")
        session.commit()
    asyncio.run(_clear_cache())


async def _clear_cache() -> int:
    try:
        return await invalidate_cache("reference:*")
    finally:
        await close_redis()


def clear_cache():
    removed = asyncio.run(_clear_cache())
    print(f"  Reference cache cleared ({removed} keys)")


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    if cmd == "seed-reference":
        seed_reference()
    elif cmd == "clear-cache":
        clear_cache()
    else:
        print(__doc__)
        sys.exit(1)
