"""
Company feature routes.
"""
import html
import json
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.pdf import AnnualReportPdfGenerator
from app.core.storage import store
from app.features.companies.jobs import SearchIndexJob
from app.features.companies.models import Company
from app.features.companies.schemas import CompanyResponse, CompanyUpdate
from app.features.memberships.models import Membership
from app.features.memberships.notifications import NotificationJob
from app.features.memberships.schemas import MembershipInvite, MembershipResponse
from app.features.permissions.dependencies import get_user_permissions, require_company_permission
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["companies"])


async def get_company(company_id: str, db: AsyncSession) -> Company:
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


@router.get("/{company_id}", response_model=CompanyResponse)
async def show_company(
    company_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    _user: Annotated[User, Depends(require_company_permission("company.settings", "read"))]
):
    return await get_company(company_id, db)


@router.patch("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: str,
    update_data: CompanyUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    _user: Annotated[User, Depends(require_company_permission("company.settings", "update"))]
):
    company = await get_company(company_id, db)
    for key, value in update_data.model_dump(exclude_unset=True).items():
        setattr(company, key, value)
    await db.commit()
    await db.refresh(company)

    SearchIndexJob.perform_later(company.id)
    return company


@router.get("/{company_id}/dashboard", response_class=HTMLResponse)
async def company_dashboard(
    company_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(require_company_permission("company.settings", "read"))]
):
    """Server rendered shell of the dashboard; the page props live in data-page."""
    company = await get_company(company_id, db)
    membership = (await user.memberships_for(db)).get(company.id)
    permissions = await get_user_permissions(db, user.id, company.id)
    features = [
        (await subscription.awaitable_attrs.subscribed).name
        for subscription in await company.awaitable_attrs.subscriptions
    ]

    page = {
        "component": "Companies/Dashboard",
        "url": str(request.url.path),
        "props": {
            "company": CompanyResponse.model_validate(company).model_dump(mode="json"),
            "policy_level": membership.policy_level.value if membership else None,
            "features": sorted(features),
            "permissions": [f"{p.scope}:{p.action}" for p in permissions],
        },
    }
    data_page = html.escape(json.dumps(page), quote=True)
    return HTMLResponse(
        "<!DOCTYPE html><html><head><title>Board portal</title></head>"
        f'<body><div id="app" data-page="{data_page}"></div></body></html>'
    )


@router.get("/{company_id}/annual-report.pdf")
async def annual_report(
    company_id: str,
    year: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _user: Annotated[User, Depends(require_company_permission("company.financials", "read"))]
):
    company = await get_company(company_id, db)
    document = f"<h1>{html.escape(company.title)}</h1><h2>Annual report {year}</h2>"
    content = AnnualReportPdfGenerator(document, year=year).generate()
    store.upload(f"companies/{company.id}/annual-report-{year}.pdf", content, "application/pdf")
    return Response(
        content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="annual-report-{year}.pdf"'},
    )


@router.post("/{company_id}/memberships", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED)
async def invite_member(
    company_id: str,
    invite: MembershipInvite,
    db: Annotated[AsyncSession, Depends(get_db)],
    _user: Annotated[User, Depends(require_company_permission("company.members", "create"))]
):
    """Invite someone to the company's board portal and notify them by email."""
    company = await get_company(company_id, db)

    result = await db.execute(select(User).where(User.email == invite.email))
    member = result.scalar_one_or_none()
    if member is None:
        member = User(email=invite.email, name=invite.name)
        db.add(member)
        await db.flush()

    result = await db.execute(
        select(Membership).where(Membership.user_id == member.id, Membership.company_id == company.id)
    )
    if result.scalar_one_or_none() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already a member of this company")

    membership = Membership(
        user_id=member.id,
        company_id=company.id,
        policy_level=invite.policy_level,
        function=invite.function,
        board_member=invite.board_member,
    )
    db.add(membership)
    await db.commit()
    await db.refresh(membership)

    NotificationJob.perform_later("membership_invited", membership.id)
    log.info("Invited %s to company %s", invite.email, company.id)
    return membership
