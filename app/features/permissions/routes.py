"""
Permission routes: what the signed in user may do.
"""
from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.dependencies import get_current_user
from app.features.users.models import User
from app.features.permissions.dependencies import get_user_permissions
from app.features.permissions.schemas import UserPermissionResponse


router = APIRouter()


@router.get("/{target_id}", response_model=list[UserPermissionResponse])
async def list_my_permissions(
    target_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Permissions of the current user on a company, admin company or admin panel."""
    return await get_user_permissions(db, current_user.id, target_id)
