"""Liveness and readiness probes.

  GET /health        → process is up (no I/O)
  GET /health/ready  → database reachable; Redis reported but optional
"""

import logging
from datetime import datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import ping_database
from app.utils.cache import ping_redis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    return {
        "status": "ok",
        "service": "FreightOps",
        "environment": settings.environment,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/health/ready")
async def readiness_check():
    checks = {"database": "ok", "redis": await ping_redis()}
    try:
        await ping_database()
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Readiness: database unreachable: {e}")
        checks["database"] = f"error: {str(e)[:100]}"

    ready = checks["database"] == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "unavailable",
            "service": "FreightOps",
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
