"""
Database engine configuration and session management.

Current: SQLite (async with aiosqlite)
Future: PostgreSQL (switch to asyncpg via DATABASE_URL, no code changes)
"""
from collections.abc import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.core import config


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine, using NullPool for file based SQLite."""
    if url.startswith("sqlite") and "poolclass" not in kwargs:
        kwargs["poolclass"] = NullPool
    return create_async_engine(url, echo=False, future=True, **kwargs)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = build_engine(config.SQLALCHEMY_DATABASE_URL)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    Usage in FastAPI routes:
        @router.get("/companies")
        async def list_companies(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Company))
            return result.scalars().all()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def import_models() -> None:
    """Import every model module so its tables are registered on Base.metadata."""
    from app.features.users.models import User, AccessToken  # noqa: F401
    from app.features.companies.models import (  # noqa: F401
        Company, AdminPanel, AdminCompany, Feature, FeatureSubscription
    )
    from app.features.memberships.models import Membership, AdminPanelMembership  # noqa: F401
    from app.features.permissions.models import (  # noqa: F401
        CompanyRole, Permission, UserPermission, ManageRole, ManagePermission, AdminUser
    )


async def init_db(bind: AsyncEngine | None = None):
    """
    Create all tables.

    Called on application startup and by the test suite against its own engine.
    """
    from app.core.database.base import Base

    import_models()
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
