"""
Declarative base, shared mixins and id generation for all models.
"""
from datetime import datetime
from sqlalchemy import DateTime, String, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for every persisted model in the board backend.

    Relationships that may not be loaded yet are read with
    ``await obj.awaitable_attrs.<name>``.
    """
    pass


class UlidPrimaryKeyMixin:
    """26 character ULID primary key, sortable by creation time."""
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)


class TimestampMixin:
    """
    Adds created_at and updated_at columns.

    Usage:
        class Company(Base, UlidPrimaryKeyMixin, TimestampMixin):
            __tablename__ = "companies"
    """
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
