"""
Manage area routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.companies.jobs import SearchIndexJob
from app.features.companies.models import Company
from app.features.companies.schemas import CompanyResponse
from app.features.manage.dependencies import (
    require_elevated_session,
    require_manage_host,
    require_manage_permission,
)
from app.features.permissions.models import AdminUser
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(dependencies=[Depends(require_manage_host)])


@router.get("/companies", response_model=list[CompanyResponse])
async def list_companies(
    db: Annotated[AsyncSession, Depends(get_db)],
    _admin: Annotated[AdminUser, Depends(require_manage_permission("companies", "read"))],
    skip: int = 0,
    limit: int = 100
):
    result = await db.execute(select(Company).order_by(Company.title).offset(skip).limit(limit))
    return result.scalars().all()


@router.delete("/companies/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[AdminUser, Depends(require_manage_permission("companies", "delete"))],
    _elevated: Annotated[None, Depends(require_elevated_session)]
):
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")

    # cascades to the subscriptions, which have to be loaded first
    await company.awaitable_attrs.subscriptions
    await db.delete(company)
    await db.commit()
    SearchIndexJob.perform_later(company_id)
    log.warning("Company %s deleted by manage user %s", company_id, admin.id)
