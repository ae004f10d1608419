from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.jobs import Job
from app.features.memberships.models import Membership
from app.features.permissions.sync import sync_membership_permissions
from app.utils import get_logger


log = get_logger(__name__)


class PermissionsRebuildJob(Job):
    async def perform(self, db: AsyncSession, membership_id: str) -> None:
        result = await db.execute(select(Membership).where(Membership.id == membership_id))
        membership = result.scalar_one_or_none()
        if membership is None:
            log.info("Membership %s is gone, nothing to rebuild", membership_id)
            return
        await sync_membership_permissions(db, membership)
