"""Audit trail helper.

Every service mutation ends with one ``log_activity`` call, e.g.::

    await log_activity(
        db, user, action="generated", entity_type="invoice",
        entity_id=invoice.id, entity_code="INVAE260001",
        summary="Invoice INVAE260001 for Gulf Traders LLC on job 26AE0001: 963.38",
    )

The row joins the caller's session, so it commits or rolls back with the
change it records.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import CurrentUser
from app.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


async def log_activity(
    db: AsyncSession,
    user: CurrentUser,
    *,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    entity_code: str | None = None,
    summary: str | None = None,
    details: dict | None = None,
) -> ActivityLog:
    entry = ActivityLog(
        user_id=user.id,
        user_name=user.name,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_code=entity_code,
        summary=summary,
        details=details,
    )
    db.add(entry)
    logger.debug(f"{user.name} {action} {entity_type} {entity_code or entity_id}")
    return entry
