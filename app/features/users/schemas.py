"""
Pydantic schemas for user-related responses.
"""
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from app.features.memberships.models import MembershipKind, PolicyLevel


class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)


class UserUpdate(BaseModel):
    """Schema for updating user information."""
    name: str | None = Field(None, min_length=1, max_length=255)


class MembershipSummary(BaseModel):
    id: str
    kind: MembershipKind
    owner_id: str
    policy_level: PolicyLevel

    model_config = {"from_attributes": True}


class UserResponse(UserBase):
    """Schema for user responses."""
    id: str
    uuid: str
    is_active: bool
    is_admin: bool
    last_login_at: datetime | None = None
    memberships: list[MembershipSummary] = []

    model_config = {"from_attributes": True}
