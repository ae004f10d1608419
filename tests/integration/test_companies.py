import httpx
import pytest

from app.main import app
from tests.support.factories import create_user
from tests.support.integration import inertia_params
from tests.support.jobs import perform_and_assert_emails_delivered, perform_notifications
from tests.support.memberships import (
    base_company,
    base_membership,
    base_user,
    grant_all_company_actions,
    prepare_feature_subscription,
    update_membership,
)
from tests.support.sign_in import sign_in


pytestmark = pytest.mark.integration


@pytest.fixture
async def member(db):
    """The base user, signed in with up to date permissions on the base company."""
    membership = await base_membership(db)
    await update_membership(db, membership)
    user = await base_user(db)
    sign_in(app, user)
    return user


async def test_dashboard_renders_page_props(db, client, member):
    company = await base_company(db)
    await prepare_feature_subscription(db, company, "board_portal")

    response = await client.get(f"/companies/{company.id}/dashboard")

    assert response.status_code == 200
    page = inertia_params(response)
    assert page["component"] == "Companies/Dashboard"
    assert page["url"] == f"/companies/{company.id}/dashboard"
    assert page["props"]["company"]["title"] == "Base Company"
    assert page["props"]["policy_level"] == "admin"
    assert page["props"]["features"] == ["board_portal"]
    assert "company.settings:read" in page["props"]["permissions"]


async def test_dashboard_is_forbidden_without_membership(db, client):
    company = await base_company(db)
    sign_in(app, await create_user(db))

    response = await client.get(f"/companies/{company.id}/dashboard")

    assert response.status_code == 403


def test_inertia_params_without_page_data():
    assert inertia_params(httpx.Response(200, json={"status": "healthy"})) is None
    assert inertia_params(httpx.Response(200, text='<div id="app" data-page="{not json"></div>')) is None
    assert inertia_params(httpx.Response(200, text='<div id="app" data-page="{}"></div>')) == {}


async def test_update_company_reindexes_it(db, client, member, stubs):
    company = await base_company(db)

    response = await client.patch(f"/companies/{company.id}", json={"title": "Renamed AB"})

    assert response.status_code == 200
    assert response.json()["title"] == "Renamed AB"
    stubs.search_index.assert_called_once_with(company.id)


async def test_annual_report_is_rendered_and_stored(db, client, member, stubs):
    company = await base_company(db)

    response = await client.get(f"/companies/{company.id}/annual-report.pdf", params={"year": 2024})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content == stubs.pdf
    stubs.s3.put_object.assert_called_once()
    assert stubs.s3.put_object.call_args.kwargs["Key"] == f"companies/{company.id}/annual-report-2024.pdf"


async def test_invite_member_sends_an_email(db, client, member):
    await grant_all_company_actions(db)
    await update_membership(db, await base_membership(db))
    company = await base_company(db)

    async with perform_and_assert_emails_delivered(1):
        async with perform_notifications():
            response = await client.post(
                f"/companies/{company.id}/memberships",
                json={"email": "new.member@boardeaser.com", "name": "New Member", "board_member": True},
            )

    assert response.status_code == 201
    assert response.json()["policy_level"] == "viewer"


async def test_invite_existing_member_conflicts(db, client, member):
    await grant_all_company_actions(db)
    await update_membership(db, await base_membership(db))
    company = await base_company(db)

    response = await client.post(
        f"/companies/{company.id}/memberships",
        json={"email": member.email, "name": member.name},
    )

    assert response.status_code == 409


async def test_invite_needs_create_permission(db, client, member):
    company = await base_company(db)

    response = await client.post(
        f"/companies/{company.id}/memberships",
        json={"email": "new.member@boardeaser.com", "name": "New Member"},
    )

    assert response.status_code == 403
