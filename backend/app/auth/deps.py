"""FastAPI dependencies for authentication and authorization.

There is no local user table: the principal is built from the token
claims alone.

Dependencies:
  get_current_user        → decode JWT, return CurrentUser
  require_permission(...) → restrict to specific granular permissions
"""

from dataclasses import dataclass, field

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.auth.jwt import decode_token
from app.auth.permissions import has_permission
from app.config import settings
from app.middleware.exceptions import PermissionDeniedError

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.auth_token_url)


@dataclass
class CurrentUser:
    id: str
    name: str
    office_id: str
    role: str = ""
    permissions: list[str] = field(default_factory=list)


# ── Core user dependency ────────────────────────────────────

async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Decode the JWT and return the principal it describes."""
    payload = decode_token(token)
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(
        id=user_id,
        name=payload.get("name") or user_id,
        office_id=payload.get("office_id") or settings.default_office_id,
        role=payload.get("role", ""),
        permissions=payload.get("permissions", []),
    )


# ── Permission-based access control ─────────────────────────

def require_permission(*perms: str):
    """Dependency factory: restrict to users who hold ALL listed permissions.

    Reads permissions from the JWT claims, so this is a zero-DB-hit check.

    Usage:
        @router.post("/shipments/{shipment_id}/costings")
        async def add_costing(
            user: CurrentUser = Depends(require_permission("financials.write")),
        ):
            ...
    """
    async def _check(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        missing = [p for p in perms if not has_permission(user.permissions, p)]
        if missing:
            raise PermissionDeniedError(f"Missing permissions: {', '.join(missing)}")
        return user

    return _check
