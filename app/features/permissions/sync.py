"""
Keeps a user's derived permissions in line with one of their memberships.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.companies.models import AdminCompany
from app.features.memberships.models import AdminPanelMembership, Membership
from app.features.permissions.builders import (
    AdminCompanyPermissionsBuilderService,
    AdminPanelPermissionsBuilderService,
    CompanyPermissionsBuilderService,
)
from app.utils import get_logger


log = get_logger(__name__)


async def sync_membership_permissions(db: AsyncSession, membership: Membership) -> None:
    """
    Rebuild every permission the membership contributes to.

    - admin panel membership: the panel itself, then for each company the
      panel administers, both the company and the admin company
    - membership through an admin company: the real company and the admin company
    - plain membership: its company

    Builder errors propagate.
    """
    user = await membership.awaitable_attrs.user
    is_panel = isinstance(membership, AdminPanelMembership)
    admin_company = None if is_panel else await membership.awaitable_attrs.admin_company

    if is_panel:
        await AdminPanelPermissionsBuilderService(db, membership).perform()
        result = await db.execute(
            select(AdminCompany)
            .where(AdminCompany.admin_panel_id == membership.admin_panel_id)
            .order_by(AdminCompany.id)
        )
        for panel_company in result.scalars().all():
            company = await panel_company.awaitable_attrs.company
            await CompanyPermissionsBuilderService(db, user, company).perform()
            await AdminCompanyPermissionsBuilderService(db, user, panel_company).perform()
    elif admin_company is not None:
        company = await admin_company.awaitable_attrs.company
        await CompanyPermissionsBuilderService(db, user, company).perform()
        await AdminCompanyPermissionsBuilderService(db, user, admin_company).perform()
    else:
        # Also covers an admin_company_id pointing at no admin company
        company = await membership.awaitable_attrs.company
        await CompanyPermissionsBuilderService(db, user, company).perform()

    log.info("Synced permissions for membership %s (user %s)", membership.id, membership.user_id)
