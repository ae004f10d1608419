"""
Permission checks and FastAPI dependencies for the board portal.

Checks read the materialised UserPermission rows only; they never look at
roles or memberships directly.
"""
from typing import Annotated
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.dependencies import get_current_user
from app.features.users.models import User
from app.features.permissions.models import UserPermission
from app.utils import get_logger


log = get_logger(__name__)


async def get_user_permissions(db: AsyncSession, user_id: str, target_id: str) -> list[UserPermission]:
    result = await db.execute(
        select(UserPermission)
        .where(UserPermission.user_id == user_id, UserPermission.target_id == target_id)
        .order_by(UserPermission.scope, UserPermission.action)
    )
    return list(result.scalars().all())


async def has_permission(db: AsyncSession, user: User, target_id: str, scope: str, action: str) -> bool:
    """True if the user may perform ``action`` on ``scope`` of the company / admin company / panel."""
    if user.is_admin:
        log.debug("User %s is admin - granted %s on %s", user.id, action, scope)
        return True

    result = await db.execute(
        select(UserPermission.id).where(
            UserPermission.user_id == user.id,
            UserPermission.target_id == target_id,
            UserPermission.scope == scope,
            UserPermission.action == action,
        ).limit(1)
    )
    granted = result.scalar_one_or_none() is not None
    log.debug("User %s %s %s on %s in %s", user.id, "granted" if granted else "denied", action, scope, target_id)
    return granted


async def ensure_permission(db: AsyncSession, user: User, target_id: str, scope: str, action: str) -> None:
    """Raise 403 unless the user has the permission."""
    if not await has_permission(db, user, target_id, scope, action):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission denied: {action} on {scope}"
        )


def require_company_permission(scope: str, action: str):
    """
    Dependency for routes with a ``company_id`` path parameter.

    Usage:
        @router.patch("/{company_id}")
        async def update_company(
            company_id: str,
            user: User = Depends(require_company_permission("company.settings", "update"))
        ):
            ...
    """
    async def permission_dependency(
        company_id: str,
        db: Annotated[AsyncSession, Depends(get_db)],
        current_user: Annotated[User, Depends(get_current_user)]
    ) -> User:
        await ensure_permission(db, current_user, company_id, scope, action)
        return current_user

    return permission_dependency
