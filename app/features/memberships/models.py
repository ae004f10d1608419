"""
Membership models.

A Membership links a user to a company's board portal with a policy level.
Memberships of accountants go through an AdminCompany, and the company
they actually work on is the admin company's company ("real company").
An AdminPanelMembership links a user to a whole admin panel instead of a
single company. Both live in the ``memberships`` table, told apart by
``kind``.
"""
import enum
from datetime import datetime
from typing import TYPE_CHECKING, Optional
from sqlalchemy import String, Boolean, ForeignKey, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, UlidPrimaryKeyMixin

if TYPE_CHECKING:
    from app.features.companies.models import Company, AdminCompany, AdminPanel
    from app.features.users.models import User


class MembershipKind(str, enum.Enum):
    COMPANY = "company"
    ADMIN_PANEL = "admin_panel"


class PolicyLevel(str, enum.Enum):
    """How much of the portal a member may see and change."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class BoardFunction(str, enum.Enum):
    CHAIRMAN = "chairman"
    MEMBER = "member"
    DEPUTY = "deputy"
    SECRETARY = "secretary"
    CEO = "ceo"
    AUDITOR = "auditor"
    OBSERVER = "observer"


class Membership(Base, UlidPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "memberships"

    kind: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    company_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("companies.id", ondelete="CASCADE"), nullable=True, index=True
    )
    admin_company_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("admin_companies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    admin_panel_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("admin_panels.id", ondelete="CASCADE"), nullable=True, index=True
    )

    policy_level: Mapped[PolicyLevel] = mapped_column(SQLEnum(PolicyLevel), default=PolicyLevel.VIEWER, nullable=False)
    function: Mapped[BoardFunction | None] = mapped_column(SQLEnum(BoardFunction), nullable=True)
    board_member: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Link to the financials provider
    financials_uuid: Mapped[str | None] = mapped_column(String(36), nullable=True)
    corporate_group_uuid: Mapped[str | None] = mapped_column(String(36), nullable=True)
    financials_link_created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    financials_corporate_group_created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User", lazy="selectin")
    company: Mapped[Optional["Company"]] = relationship("Company", lazy="selectin")
    admin_company: Mapped[Optional["AdminCompany"]] = relationship("AdminCompany", lazy="selectin")
    admin_panel: Mapped[Optional["AdminPanel"]] = relationship("AdminPanel", lazy="selectin")

    __mapper_args__ = {
        "polymorphic_on": "kind",
        "polymorphic_identity": MembershipKind.COMPANY.value,
    }

    @property
    def owner_id(self) -> str | None:
        """Id of what the membership grants access to."""
        if self.kind == MembershipKind.ADMIN_PANEL.value:
            return self.admin_panel_id
        return self.company_id or self.admin_company_id

    async def real_company(self) -> "Company | None":
        admin_company = await self.awaitable_attrs.admin_company
        if admin_company is not None:
            return await admin_company.awaitable_attrs.company
        return await self.awaitable_attrs.company

    def __repr__(self) -> str:
        return f"<Membership(id={self.id}, user_id={self.user_id}, company_id={self.company_id}, level={self.policy_level})>"


class AdminPanelMembership(Membership):
    __mapper_args__ = {"polymorphic_identity": MembershipKind.ADMIN_PANEL.value}

    def __repr__(self) -> str:
        return f"<AdminPanelMembership(id={self.id}, user_id={self.user_id}, panel_id={self.admin_panel_id})>"
