"""
Pydantic schemas for company requests and responses.
"""
from pydantic import BaseModel, Field

from app.features.companies.models import Plan


class CompanyUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    theme: str | None = Field(None, max_length=50)


class CompanyResponse(BaseModel):
    id: str
    title: str
    plan: Plan
    theme: str
    financials_uuid: str | None = None
    corporate_group_uuid: str | None = None

    model_config = {"from_attributes": True}
