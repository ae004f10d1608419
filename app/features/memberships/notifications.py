"""
Membership notifications, delivered by email through the job queue.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.jobs import Job
from app.core.mailer import MailDeliveryJob
from app.features.memberships.models import Membership
from app.utils import get_logger


log = get_logger(__name__)


TEMPLATES = {
    "membership_invited": (
        "You have been invited to {company}",
        "<p>Hi {name},</p><p>You now have access to the board portal of {company}.</p>",
    ),
    "policy_level_changed": (
        "Your access to {company} has changed",
        "<p>Hi {name},</p><p>Your access level is now {level}.</p>",
    ),
}


class NotificationJob(Job):
    async def perform(self, db: AsyncSession, event: str, membership_id: str) -> None:
        if event not in TEMPLATES:
            raise ValueError(f"Unknown notification event {event!r}")

        result = await db.execute(select(Membership).where(Membership.id == membership_id))
        membership = result.scalar_one_or_none()
        if membership is None:
            log.info("Membership %s is gone, dropping %s notification", membership_id, event)
            return

        user = await membership.awaitable_attrs.user
        company = await membership.real_company()
        values = {
            "name": user.name,
            "company": company.title if company else "your admin panel",
            "level": membership.policy_level.value,
        }
        subject, html = TEMPLATES[event]
        MailDeliveryJob.perform_later(
            user.email,
            subject.format(**values),
            html.format(**values),
            company.theme if company else "default",
        )
