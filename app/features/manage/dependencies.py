"""
Dependencies for the manage area (internal back office).

The manage area is only served on the manage host and uses its own
operators (AdminUser) and roles.
"""
from datetime import datetime, timedelta, timezone
from typing import Annotated
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.engine import get_db
from app.features.permissions.models import AdminUser
from app.features.users.auth import verify_jwt_token
from app.utils import get_logger


log = get_logger(__name__)
security = HTTPBearer()

PASSWORD_CONFIRMATION_TTL = timedelta(minutes=15)


async def require_manage_host(request: Request) -> None:
    host = request.url.hostname or ""
    if not host.startswith(config.MANAGE_HOST_PREFIX):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


async def get_current_manage_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> AdminUser:
    payload = verify_jwt_token(credentials.credentials)
    email = payload.get("email")
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    result = await db.execute(select(AdminUser).where(AdminUser.email == email))
    admin_user = result.scalar_one_or_none()
    if admin_user is None or not admin_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a manage user")
    return admin_user


async def manage_permissions_of(admin_user: AdminUser) -> set[tuple[str, str]]:
    granted = set()
    for role in await admin_user.awaitable_attrs.roles:
        for permission in await role.awaitable_attrs.manage_permissions:
            granted.add((permission.scope, permission.action))
    return granted


def require_manage_permission(scope: str, action: str):
    """
    Dependency requiring a manage permission of the signed in operator.

    Usage:
        @router.get("/companies")
        async def list_companies(admin: AdminUser = Depends(require_manage_permission("companies", "read"))):
            ...
    """
    async def permission_dependency(
        admin_user: Annotated[AdminUser, Depends(get_current_manage_user)]
    ) -> AdminUser:
        if (scope, action) not in await manage_permissions_of(admin_user):
            log.info("Manage user %s denied %s on %s", admin_user.id, action, scope)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {action} on {scope}"
            )
        return admin_user

    return permission_dependency


async def get_password_confirmed_at(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)]
) -> datetime | None:
    """When the operator last typed their password, from the manage SSO token."""
    value = verify_jwt_token(credentials.credentials).get("password_confirmed_at")
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


async def require_elevated_session(
    confirmed_at: Annotated[datetime | None, Depends(get_password_confirmed_at)]
) -> None:
    """Destructive manage actions need a password confirmation within the last 15 minutes."""
    if confirmed_at is None or datetime.now(timezone.utc) - confirmed_at > PASSWORD_CONFIRMATION_TTL:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Password confirmation required")
