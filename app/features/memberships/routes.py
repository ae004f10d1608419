"""
Membership routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.dependencies import get_current_user
from app.features.users.models import User
from app.features.memberships.models import Membership
from app.features.memberships.notifications import NotificationJob
from app.features.memberships.schemas import MembershipResponse, MembershipUpdate
from app.features.memberships.service import (
    InvalidMembershipUpdate,
    apply_membership_attributes,
    target_company_id,
)
from app.features.permissions.dependencies import ensure_permission
from app.features.permissions.jobs import PermissionsRebuildJob
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["memberships"])


@router.patch("/{membership_id}", response_model=MembershipResponse)
async def update_membership(
    membership_id: str,
    update_data: MembershipUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """
    Change a membership. Needs update on company.members of the member's company.

    Permissions are rebuilt in the background unless the member is flagged
    to skip background work.
    """
    result = await db.execute(select(Membership).where(Membership.id == membership_id))
    membership = result.scalar_one_or_none()
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership not found")

    company_id = target_company_id(membership) or membership.admin_panel_id
    await ensure_permission(db, current_user, company_id, "company.members", "update")

    previous_level = membership.policy_level
    try:
        membership = await apply_membership_attributes(
            db, membership, update_data.model_dump(exclude_unset=True)
        )
    except InvalidMembershipUpdate as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    member = await membership.awaitable_attrs.user
    if member.skip_background_work:
        log.info("Skipping background work for membership %s", membership.id)
    else:
        PermissionsRebuildJob.perform_later(membership.id)
        if membership.policy_level != previous_level:
            NotificationJob.perform_later("policy_level_changed", membership.id)

    await db.commit()
    return membership
