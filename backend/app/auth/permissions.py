"""Permission vocabulary and role defaults.

Permissions are ``<area>.<action>`` strings carried in the access token;
checks never touch the database.

  shipment.*    jobs, parties, containers, cargo, status logs
  financials.*  costings, invoices, purchase invoices, receipts, payments
  reports.read  statements and aging
  reference.manage  create lookups, refresh the lookup cache
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

ALL_PERMISSIONS: frozenset[str] = frozenset({
    "shipment.read", "shipment.write", "shipment.delete",
    "financials.read", "financials.write", "financials.delete",
    "reports.read",
    "reference.manage",
})

ROLE_DEFAULTS: dict[str, frozenset[str]] = {
    "administrator": ALL_PERMISSIONS,
    # Bills and collects; can see jobs but not change them
    "accountant": frozenset({
        "shipment.read",
        "financials.read", "financials.write", "financials.delete",
        "reports.read",
    }),
    # Runs the job file; can read charges but not bill them
    "operator": frozenset({
        "shipment.read", "shipment.write", "shipment.delete",
        "financials.read",
    }),
}


def resolve_permissions(role: str, overrides: dict[str, bool] | None = None) -> list[str]:
    """Role defaults with per-user grants (True) and revocations (False) applied.

    Sorted so the token claim is stable for a given input.
    """
    effective = set(ROLE_DEFAULTS.get(role, frozenset()))
    for perm, granted in (overrides or {}).items():
        if perm not in ALL_PERMISSIONS:
            logger.warning(f"Ignoring unknown permission override {perm!r} for role {role!r}")
            continue
        if granted:
            effective.add(perm)
        else:
            effective.discard(perm)
    return sorted(effective)


def has_permission(user_permissions: list[str] | set[str], required: str) -> bool:
    return required in user_permissions
