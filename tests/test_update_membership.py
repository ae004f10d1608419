from unittest.mock import patch

import pytest
from pydantic import ValidationError
from sqlalchemy import select

from app.features.memberships.models import BoardFunction, PolicyLevel
from app.features.memberships.service import InvalidMembershipUpdate
from app.features.permissions.builders import (
    AdminCompanyPermissionsBuilderService,
    AdminPanelPermissionsBuilderService,
    CompanyPermissionsBuilderService,
)
from app.features.permissions.models import UserPermission
from tests.support.factories import (
    create_admin_company,
    create_admin_panel,
    create_admin_panel_membership,
    create_company,
    create_membership,
)
from tests.support.memberships import base_membership, set_policy_level, update_membership


pytestmark = pytest.mark.unit


@pytest.fixture
def builders():
    """Record builder runs instead of rebuilding."""
    with patch.object(CompanyPermissionsBuilderService, "perform", autospec=True, return_value=0) as company, \
            patch.object(AdminCompanyPermissionsBuilderService, "perform", autospec=True, return_value=0) as admin_company, \
            patch.object(AdminPanelPermissionsBuilderService, "perform", autospec=True, return_value=0) as admin_panel:
        yield {"company": company, "admin_company": admin_company, "admin_panel": admin_panel}


def built(mock, attribute):
    """Ids of the targets the builder ran for, in call order."""
    return [getattr(call.args[0], attribute).id for call in mock.call_args_list]


async def test_plain_membership_rebuilds_its_company(db, builders):
    membership = await create_membership(db)

    await update_membership(db, membership, {"policy_level": "editor"})

    assert built(builders["company"], "company") == [membership.company_id]
    assert builders["admin_company"].call_count == 0
    assert builders["admin_panel"].call_count == 0
    assert membership.policy_level == PolicyLevel.EDITOR


async def test_admin_company_membership_rebuilds_real_company_and_admin_company(db, builders):
    admin_company = await create_admin_company(db)
    membership = await create_membership(db, admin_company=admin_company)

    await update_membership(db, membership, {})

    assert built(builders["company"], "company") == [admin_company.company_id]
    assert built(builders["admin_company"], "admin_company") == [admin_company.id]
    assert builders["admin_panel"].call_count == 0


async def test_admin_company_id_without_an_admin_company_rebuilds_only_the_company(db, builders):
    membership = await create_membership(db)

    await update_membership(db, membership, {"admin_company_id": "01HMISSINGADMINCOMPANY0000"})

    assert membership.admin_company_id == "01HMISSINGADMINCOMPANY0000"
    assert built(builders["company"], "company") == [membership.company_id]
    assert builders["admin_company"].call_count == 0


async def test_admin_panel_membership_rebuilds_panel_and_every_administered_company(db, builders):
    admin_panel = await create_admin_panel(db)
    first = await create_admin_company(db, admin_panel=admin_panel)
    second = await create_admin_company(db, admin_panel=admin_panel)
    membership = await create_admin_panel_membership(db, admin_panel=admin_panel)

    await update_membership(db, membership, {"policy_level": PolicyLevel.ADMIN})

    expected = sorted([first, second], key=lambda admin_company: admin_company.id)
    assert builders["admin_panel"].call_count == 1
    assert builders["admin_panel"].call_args.args[0].membership is membership
    assert built(builders["company"], "company") == [ac.company_id for ac in expected]
    assert built(builders["admin_company"], "admin_company") == [ac.id for ac in expected]


async def test_admin_panel_without_companies_rebuilds_only_the_panel(db, builders):
    membership = await create_admin_panel_membership(db)

    await update_membership(db, membership)

    assert builders["admin_panel"].call_count == 1
    assert builders["company"].call_count == 0
    assert builders["admin_company"].call_count == 0


async def test_memberships_cache_is_recomputed_afterwards(db, builders):
    membership = await create_membership(db)
    user = await membership.awaitable_attrs.user
    assert set(await user.memberships_for(db)) == {membership.company_id}

    other_company = await create_company(db)
    other = await create_membership(db, user=user, company=other_company)
    # Still the memoized value
    assert set(await user.memberships_for(db)) == {membership.company_id}

    await update_membership(db, other, {"board_member": True})

    assert set(await user.memberships_for(db)) == {membership.company_id, other_company.id}


async def test_background_work_is_enabled_afterwards(db, builders):
    membership = await create_membership(db)
    user = await membership.awaitable_attrs.user
    assert user.skip_background_work is True

    await update_membership(db, membership, {"function": BoardFunction.SECRETARY})

    assert user.skip_background_work is False


@pytest.mark.parametrize("attributes", [
    {"policy_level": "owner"},
    {"nickname": "boss"},
    {"board_member": "sometimes"},
])
async def test_invalid_attributes_raise_before_any_rebuild(db, builders, attributes):
    membership = await create_membership(db)
    user = await membership.awaitable_attrs.user

    with pytest.raises(ValidationError):
        await update_membership(db, membership, attributes)

    assert builders["company"].call_count == 0
    assert user.skip_background_work is True


async def test_company_only_attributes_are_rejected_for_admin_panel_memberships(db, builders):
    membership = await create_admin_panel_membership(db)

    with pytest.raises(InvalidMembershipUpdate):
        await update_membership(db, membership, {"board_member": True})

    assert builders["admin_panel"].call_count == 0


async def test_builder_errors_propagate(db):
    membership = await create_membership(db)
    user = await membership.awaitable_attrs.user

    with patch.object(CompanyPermissionsBuilderService, "perform", autospec=True, side_effect=RuntimeError("boom")):
        with pytest.raises(RuntimeError, match="boom"):
            await update_membership(db, membership, {})

    assert user.skip_background_work is True


async def test_set_policy_level_rebuilds_user_permissions(db):
    membership = await base_membership(db)

    await set_policy_level(db, PolicyLevel.ADMIN, membership)

    result = await db.execute(
        select(UserPermission.scope, UserPermission.action).where(
            UserPermission.user_id == membership.user_id,
            UserPermission.target_id == membership.company_id,
        )
    )
    granted = set(result.all())
    assert ("company.settings", "read") in granted
    assert ("company.members", "update") in granted
    assert ("company.members", "delete") not in granted

    # No global viewer role exists, so viewers end up without permissions
    await set_policy_level(db, "viewer", membership)

    result = await db.execute(select(UserPermission).where(UserPermission.user_id == membership.user_id))
    assert result.scalars().all() == []
