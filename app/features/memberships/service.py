"""
Membership persistence helpers shared by routes, jobs and scripts.
"""
from typing import Any, Mapping
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.memberships.models import AdminPanelMembership, Membership
from app.features.memberships.schemas import MembershipUpdate


class InvalidMembershipUpdate(ValueError):
    """The attributes are valid on their own but not for this kind of membership."""


COMPANY_ONLY_ATTRIBUTES = frozenset({"admin_company_id", "function", "board_member"})


async def apply_membership_attributes(
    db: AsyncSession,
    membership: Membership,
    attributes: Mapping[str, Any],
) -> Membership:
    """
    Validate ``attributes``, assign them and flush.

    Raises:
        pydantic.ValidationError: unknown attribute or invalid value
        InvalidMembershipUpdate: company-only attribute on an admin panel membership
    """
    changes = MembershipUpdate.model_validate(dict(attributes)).model_dump(exclude_unset=True)

    if isinstance(membership, AdminPanelMembership):
        rejected = sorted(COMPANY_ONLY_ATTRIBUTES & changes.keys())
        if rejected:
            raise InvalidMembershipUpdate(
                f"Admin panel memberships have no {', '.join(rejected)}"
            )

    for key, value in changes.items():
        setattr(membership, key, value)

    await db.flush()
    await db.refresh(membership)
    return membership


def target_company_id(membership: Membership) -> str | None:
    """Company whose member settings govern this membership."""
    if membership.admin_company is not None:
        return membership.admin_company.company_id
    return membership.company_id
