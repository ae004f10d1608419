"""
Seed script creating the global default company roles.

There is one global role per policy level (owner_id NULL). Companies and
admin panels can override them with roles of their own; the permission
builders fall back to these.

Usage:
    uv run python -m scripts.seed_roles
"""
import asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db, init_db
from app.features.memberships.models import PolicyLevel
from app.features.permissions.models import ACTIONS, CompanyRole, Permission
from app.features.permissions.scopes import load_permission_scopes
from app.utils import get_logger


log = get_logger(__name__)


# Scopes editors may add to, on top of read/update everywhere
EDITOR_CREATE_SCOPES = ("company.meetings", "company.documents", "company.tasks")


def default_grants(level: PolicyLevel, scopes: tuple[str, ...]) -> list[tuple[str, str]]:
    if level == PolicyLevel.ADMIN:
        return [(scope, action) for scope in scopes for action in ACTIONS]
    if level == PolicyLevel.EDITOR:
        grants = [(scope, action) for scope in scopes for action in ("read", "update")]
        grants += [(scope, "create") for scope in scopes if scope in EDITOR_CREATE_SCOPES]
        return grants
    return [(scope, "read") for scope in scopes]


async def seed_default_roles(db: AsyncSession) -> dict[str, CompanyRole]:
    """
    Create the global roles and any of their permissions that are missing.

    Safe to run repeatedly.
    """
    scopes = load_permission_scopes()
    roles = {}

    for level in PolicyLevel:
        result = await db.execute(
            select(CompanyRole).where(CompanyRole.owner_id.is_(None), CompanyRole.title == level.value)
        )
        role = result.scalars().first()
        if role is None:
            role = CompanyRole(owner_type="Company", owner_id=None, title=level.value)
            db.add(role)
            await db.flush()
            log.info("Created role '%s'", level.value)

        result = await db.execute(
            select(Permission.scope, Permission.action).where(
                Permission.subject_type == "CompanyRole", Permission.subject_id == role.id
            )
        )
        existing = {(scope, action) for scope, action in result.all()}
        missing = [grant for grant in default_grants(level, scopes) if grant not in existing]
        db.add_all(
            Permission(subject_type="CompanyRole", subject_id=role.id, scope=scope, action=action)
            for scope, action in missing
        )
        log.info("Role '%s': %d permissions added", level.value, len(missing))
        roles[level.value] = role

    await db.commit()
    return roles


async def main():
    log.info("Initializing database tables...")
    await init_db()

    async for db in get_db():
        await seed_default_roles(db)
        log.info("Default roles seeded")
        break


if __name__ == "__main__":
    asyncio.run(main())
