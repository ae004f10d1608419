"""
Pydantic schemas for membership requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.features.memberships.models import BoardFunction, MembershipKind, PolicyLevel


class MembershipUpdate(BaseModel):
    """Attributes that may be changed on an existing membership."""
    model_config = ConfigDict(extra="forbid")

    policy_level: PolicyLevel | None = None
    function: BoardFunction | None = None
    board_member: bool | None = None
    admin_company_id: str | None = Field(None, min_length=26, max_length=26)
    financials_uuid: str | None = Field(None, max_length=36)
    corporate_group_uuid: str | None = Field(None, max_length=36)
    financials_link_created_at: datetime | None = None
    financials_corporate_group_created_at: datetime | None = None


class MembershipInvite(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    policy_level: PolicyLevel = PolicyLevel.VIEWER
    function: BoardFunction | None = None
    board_member: bool = False


class MembershipResponse(BaseModel):
    id: str
    kind: MembershipKind
    user_id: str
    company_id: str | None = None
    admin_company_id: str | None = None
    admin_panel_id: str | None = None
    policy_level: PolicyLevel
    function: BoardFunction | None = None
    board_member: bool

    model_config = {"from_attributes": True}
