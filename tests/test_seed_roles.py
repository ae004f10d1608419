import pytest
from sqlalchemy import func, select

from app.features.memberships.models import PolicyLevel
from app.features.permissions.models import Permission
from app.features.permissions.scopes import load_permission_scopes
from app.main import app
from scripts.seed_roles import default_grants, seed_default_roles
from tests.support.factories import create_membership
from tests.support.memberships import update_membership
from tests.support.sign_in import sign_in


pytestmark = pytest.mark.unit


def test_default_grants_by_level():
    scopes = ("company.meetings", "company.settings")

    assert ("company.settings", "delete") in default_grants(PolicyLevel.ADMIN, scopes)
    assert default_grants(PolicyLevel.VIEWER, scopes) == [("company.meetings", "read"), ("company.settings", "read")]
    editor = default_grants(PolicyLevel.EDITOR, scopes)
    assert ("company.meetings", "create") in editor
    assert ("company.settings", "create") not in editor


async def test_seeding_twice_adds_nothing_new(db):
    roles = await seed_default_roles(db)
    count = await db.scalar(select(func.count()).select_from(Permission))

    assert set(roles) == {level.value for level in PolicyLevel}
    assert await seed_default_roles(db) == roles
    assert await db.scalar(select(func.count()).select_from(Permission)) == count
    assert count == sum(len(default_grants(level, load_permission_scopes())) for level in PolicyLevel)


async def test_seeded_viewer_role_reaches_members(db, client):
    await seed_default_roles(db)
    membership = await create_membership(db, policy_level=PolicyLevel.VIEWER)
    await update_membership(db, membership)
    sign_in(app, await membership.awaitable_attrs.user)

    response = await client.get(f"/companies/{membership.company_id}")

    assert response.status_code == 200
    assert (await client.patch(f"/companies/{membership.company_id}", json={"title": "Nope"})).status_code == 403
