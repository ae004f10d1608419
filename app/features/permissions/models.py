"""
Permission models.

Board portal authorization is role based. A CompanyRole carries
Permission rows (scope + action). Roles owned by nobody (owner_id NULL)
are the global defaults, one per policy level; companies may override them
with roles of their own.

What a user may actually do is materialised in UserPermission rows by the
permission builders (see builders.py). Those rows are derived data and
must be rebuilt whenever a membership changes.

The manage area (internal back office) has its own ManageRole /
ManagePermission / AdminUser tables.
"""
import enum
from sqlalchemy import String, ForeignKey, Table, Column, UniqueConstraint, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, UlidPrimaryKeyMixin


ACTIONS = ("read", "create", "update", "delete")


class PermissionSource(str, enum.Enum):
    """Which builder produced a UserPermission row."""
    COMPANY = "company"
    ADMIN_COMPANY = "admin_company"
    ADMIN_PANEL = "admin_panel"


class CompanyRole(Base, UlidPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "company_roles"
    __table_args__ = (UniqueConstraint("owner_type", "owner_id", "title"),)

    owner_type: Mapped[str] = mapped_column(String(50), nullable=False, default="Company")
    # NULL means the role is a global default
    owner_id: Mapped[str | None] = mapped_column(String(26), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<CompanyRole(id={self.id}, owner={self.owner_type}:{self.owner_id}, title={self.title!r})>"


class Permission(Base, UlidPrimaryKeyMixin, TimestampMixin):
    """Grants ``subject`` (a role) ``action`` on ``scope``."""
    __tablename__ = "permissions"
    __table_args__ = (UniqueConstraint("subject_type", "subject_id", "scope", "action"),)

    subject_type: Mapped[str] = mapped_column(String(50), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    scope: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<Permission({self.subject_type}:{self.subject_id} {self.action} {self.scope})>"


class UserPermission(Base, UlidPrimaryKeyMixin, TimestampMixin):
    """Effective permission of a user on one company, admin company or admin panel."""
    __tablename__ = "user_permissions"
    __table_args__ = (UniqueConstraint("user_id", "source", "target_id", "scope", "action"),)

    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    scope: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<UserPermission(user_id={self.user_id}, {self.source}:{self.target_id} {self.action} {self.scope})>"


# ============================================================================
# Manage area
# ============================================================================

admin_user_roles = Table(
    "admin_user_roles",
    Base.metadata,
    Column("admin_user_id", String(26), ForeignKey("admin_users.id", ondelete="CASCADE"), primary_key=True),
    Column("manage_role_id", String(26), ForeignKey("manage_roles.id", ondelete="CASCADE"), primary_key=True),
)


class ManageRole(Base, UlidPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "manage_roles"

    title: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    manage_permissions: Mapped[list["ManagePermission"]] = relationship(
        "ManagePermission",
        back_populates="role",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<ManageRole(id={self.id}, title={self.title!r})>"


class ManagePermission(Base, UlidPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "manage_permissions"
    __table_args__ = (UniqueConstraint("role_id", "scope", "action"),)

    # Scopes that distinguish create/update/delete from read. The rest only know "read".
    GRANULAR_SCOPES = ("companies", "users", "features")

    role_id: Mapped[str] = mapped_column(String(26), ForeignKey("manage_roles.id", ondelete="CASCADE"), nullable=False, index=True)
    scope: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)

    role: Mapped["ManageRole"] = relationship("ManageRole", back_populates="manage_permissions", lazy="selectin")

    def __repr__(self) -> str:
        return f"<ManagePermission(role_id={self.role_id}, {self.action} {self.scope})>"


class AdminUser(Base, UlidPrimaryKeyMixin, TimestampMixin):
    """Back office operator signing in to the manage area."""
    __tablename__ = "admin_users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    roles: Mapped[list["ManageRole"]] = relationship(
        "ManageRole",
        secondary=admin_user_roles,
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<AdminUser(id={self.id}, email={self.email!r})>"
