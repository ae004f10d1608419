"""
Permission builders.

Each builder recomputes the UserPermission rows of one user for one target
(company, admin company or admin panel):

1. work out the user's policy level on the target from their memberships
2. pick the role with that title, preferring one owned by the target over
   the global default (owner_id NULL)
3. replace the user's rows for the target with the role's permissions
   whose scope belongs to the builder (company.*, admin_company.*, ...)

A user without a membership on the target ends up with no rows for it.
"""
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.companies.models import AdminCompany, Company
from app.features.memberships.models import AdminPanelMembership, Membership, PolicyLevel
from app.features.permissions.models import CompanyRole, Permission, PermissionSource, UserPermission
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


class PermissionsBuilder:
    source: PermissionSource
    scope_prefix: str
    owner_type: str

    def __init__(self, db: AsyncSession, user_id: str):
        self.db = db
        self.user_id = user_id

    @property
    def target_id(self) -> str:
        raise NotImplementedError

    @property
    def role_owner_id(self) -> str:
        return self.target_id

    async def policy_level(self) -> PolicyLevel | None:
        raise NotImplementedError

    async def role_for(self, level: PolicyLevel) -> CompanyRole | None:
        stmt = (
            select(CompanyRole)
            .where(
                CompanyRole.title == level.value,
                or_(
                    (CompanyRole.owner_type == self.owner_type) & (CompanyRole.owner_id == self.role_owner_id),
                    CompanyRole.owner_id.is_(None),
                ),
            )
            # Roles owned by the target sort before the global defaults
            .order_by(CompanyRole.owner_id.is_(None), CompanyRole.id)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def grants(self, role: CompanyRole) -> list[tuple[str, str]]:
        result = await self.db.execute(
            select(Permission.scope, Permission.action).where(
                Permission.subject_type == "CompanyRole",
                Permission.subject_id == role.id,
                Permission.scope.startswith(self.scope_prefix + ".", autoescape=True),
            )
        )
        return sorted({(scope, action) for scope, action in result.all()})

    async def perform(self) -> int:
        """Rebuild and return the number of permission rows written."""
        grants: list[tuple[str, str]] = []
        level = await self.policy_level()
        if level is not None:
            role = await self.role_for(level)
            if role is not None:
                grants = await self.grants(role)

        await self.db.execute(
            delete(UserPermission).where(
                UserPermission.user_id == self.user_id,
                UserPermission.source == self.source.value,
                UserPermission.target_id == self.target_id,
            )
        )
        self.db.add_all(
            UserPermission(
                user_id=self.user_id,
                source=self.source.value,
                target_id=self.target_id,
                scope=scope,
                action=action,
            )
            for scope, action in grants
        )
        await self.db.flush()

        log.debug(
            "Rebuilt %d %s permissions for user %s on %s (level=%s)",
            len(grants), self.source.value, self.user_id, self.target_id, level,
        )
        return len(grants)


class CompanyPermissionsBuilderService(PermissionsBuilder):
    source = PermissionSource.COMPANY
    scope_prefix = "company"
    owner_type = "Company"

    def __init__(self, db: AsyncSession, user: User, company: Company):
        super().__init__(db, user.id)
        self.user = user
        self.company = company

    @property
    def target_id(self) -> str:
        return self.company.id

    async def policy_level(self) -> PolicyLevel | None:
        # Direct membership, or membership through an admin company of this company
        result = await self.db.execute(
            select(Membership.policy_level)
            .outerjoin(AdminCompany, Membership.admin_company_id == AdminCompany.id)
            .where(
                Membership.user_id == self.user_id,
                or_(Membership.company_id == self.company.id, AdminCompany.company_id == self.company.id),
            )
            .order_by(Membership.admin_company_id.is_not(None))
        )
        level = result.scalars().first()
        if level is not None:
            return level

        # Admin panel members reach every company their panel administers
        result = await self.db.execute(
            select(AdminPanelMembership.policy_level)
            .join(AdminCompany, AdminCompany.admin_panel_id == AdminPanelMembership.admin_panel_id)
            .where(
                AdminPanelMembership.user_id == self.user_id,
                AdminCompany.company_id == self.company.id,
            )
        )
        return result.scalars().first()


class AdminCompanyPermissionsBuilderService(PermissionsBuilder):
    source = PermissionSource.ADMIN_COMPANY
    scope_prefix = "admin_company"
    owner_type = "AdminPanel"

    def __init__(self, db: AsyncSession, user: User, admin_company: AdminCompany):
        super().__init__(db, user.id)
        self.user = user
        self.admin_company = admin_company

    @property
    def target_id(self) -> str:
        return self.admin_company.id

    @property
    def role_owner_id(self) -> str:
        # Admin company roles are owned by the panel, not the admin company
        return self.admin_company.admin_panel_id

    async def policy_level(self) -> PolicyLevel | None:
        result = await self.db.execute(
            select(Membership.policy_level).where(
                Membership.user_id == self.user_id,
                Membership.admin_company_id == self.admin_company.id,
            )
        )
        level = result.scalars().first()
        if level is not None:
            return level

        result = await self.db.execute(
            select(AdminPanelMembership.policy_level).where(
                AdminPanelMembership.user_id == self.user_id,
                AdminPanelMembership.admin_panel_id == self.admin_company.admin_panel_id,
            )
        )
        return result.scalars().first()


class AdminPanelPermissionsBuilderService(PermissionsBuilder):
    source = PermissionSource.ADMIN_PANEL
    scope_prefix = "admin_panel"
    owner_type = "AdminPanel"

    def __init__(self, db: AsyncSession, membership: AdminPanelMembership):
        super().__init__(db, membership.user_id)
        self.membership = membership

    @property
    def target_id(self) -> str:
        return self.membership.admin_panel_id

    async def policy_level(self) -> PolicyLevel | None:
        return self.membership.policy_level
