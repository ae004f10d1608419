"""
User and access token models.
"""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import String, Boolean, ForeignKey, DateTime, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column, object_session, relationship

from app.core.database.base import Base, TimestampMixin, UlidPrimaryKeyMixin

if TYPE_CHECKING:
    from app.features.memberships.models import Membership


def generate_uuid() -> str:
    return str(uuid.uuid4())


# session.info key holding the ids of users whose background work is skipped
SKIP_BACKGROUND_WORK_KEY = "skip_background_work"


class User(Base, UlidPrimaryKeyMixin, TimestampMixin):
    """
    A person who signs in to the board portal.

    ``skip_background_work`` is not persisted. While it is set, changes to
    the user's memberships do not enqueue background jobs (bulk imports and
    test setup set it and reset it when they are done). It is kept in the
    session's info by user id, so it survives the User being reloaded
    within the same session.
    """
    __tablename__ = "users"

    uuid: Mapped[str] = mapped_column(String(36), unique=True, nullable=False, default=generate_uuid)

    # Appwrite user ID (for linking with Appwrite authentication)
    appwrite_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)

    _memberships_for = None
    _skip_background_work = False

    @property
    def skip_background_work(self) -> bool:
        session = object_session(self)
        if session is None or self.id is None:
            return self._skip_background_work
        return self.id in session.info.get(SKIP_BACKGROUND_WORK_KEY, ())

    @skip_background_work.setter
    def skip_background_work(self, value: bool) -> None:
        session = object_session(self)
        if session is None or self.id is None:
            self._skip_background_work = value
            return
        skipped = session.info.setdefault(SKIP_BACKGROUND_WORK_KEY, set())
        if value:
            skipped.add(self.id)
        else:
            skipped.discard(self.id)

    async def memberships_for(self, db: AsyncSession) -> dict[str, "Membership"]:
        """
        The user's memberships keyed by company id (admin panel id for
        admin panel memberships). Computed once and memoized on the instance.
        """
        if self._memberships_for is None:
            from app.features.memberships.models import Membership

            result = await db.execute(select(Membership).where(Membership.user_id == self.id))
            self._memberships_for = {m.owner_id: m for m in result.scalars().all()}
        return self._memberships_for

    def reset_memberships_for(self) -> None:
        self._memberships_for = None

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"


class AccessToken(Base, UlidPrimaryKeyMixin, TimestampMixin):
    """Credentials the user holds at an external vendor (financials provider)."""
    __tablename__ = "access_tokens"

    vendor: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    owner: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<AccessToken(id={self.id}, vendor={self.vendor}, owner_id={self.owner_id})>"


FINANCIALS_VENDOR = "visualby"
