"""
Company, admin panel and feature subscription models.

A company is a single board customer. An admin panel is an accounting or
advisory firm that administers several companies; each administered
company is linked to the panel through an AdminCompany.
"""
import enum
from sqlalchemy import String, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, UlidPrimaryKeyMixin


class Plan(str, enum.Enum):
    """Subscription plan of a company."""
    BASIC = "basic"
    PLUS = "plus"
    PREMIUM = "premium"


class Company(Base, UlidPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "companies"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    plan: Mapped[Plan] = mapped_column(SQLEnum(Plan), default=Plan.BASIC, nullable=False)
    theme: Mapped[str] = mapped_column(String(50), default="default", nullable=False)

    # Links to the external financials provider
    financials_uuid: Mapped[str | None] = mapped_column(String(36), nullable=True)
    corporate_group_uuid: Mapped[str | None] = mapped_column(String(36), nullable=True)

    subscriptions: Mapped[list["FeatureSubscription"]] = relationship(
        "FeatureSubscription",
        back_populates="company",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, title={self.title!r}, plan={self.plan})>"


class AdminPanel(Base, UlidPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "admin_panels"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    financials_uuid: Mapped[str | None] = mapped_column(String(36), nullable=True)

    admin_companies: Mapped[list["AdminCompany"]] = relationship(
        "AdminCompany",
        back_populates="admin_panel",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<AdminPanel(id={self.id}, title={self.title!r})>"


class AdminCompany(Base, UlidPrimaryKeyMixin, TimestampMixin):
    """A company administered through an admin panel."""
    __tablename__ = "admin_companies"
    __table_args__ = (UniqueConstraint("admin_panel_id", "company_id"),)

    admin_panel_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("admin_panels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    company_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )

    admin_panel: Mapped["AdminPanel"] = relationship("AdminPanel", back_populates="admin_companies", lazy="selectin")
    company: Mapped["Company"] = relationship("Company", lazy="selectin")

    def __repr__(self) -> str:
        return f"<AdminCompany(id={self.id}, panel_id={self.admin_panel_id}, company_id={self.company_id})>"


class Feature(Base, UlidPrimaryKeyMixin, TimestampMixin):
    """A capability that can be switched on per company."""
    __tablename__ = "features"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Feature(id={self.id}, name={self.name!r})>"


class FeatureSubscription(Base, UlidPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "feature_subscriptions"
    __table_args__ = (UniqueConstraint("company_id", "feature_id"),)

    company_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    feature_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("features.id", ondelete="CASCADE"), nullable=False, index=True
    )

    company: Mapped["Company"] = relationship("Company", back_populates="subscriptions", lazy="selectin")
    subscribed: Mapped["Feature"] = relationship("Feature", lazy="selectin")

    def __repr__(self) -> str:
        return f"<FeatureSubscription(company_id={self.company_id}, feature_id={self.feature_id})>"
