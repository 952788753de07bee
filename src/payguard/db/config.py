"""Database engine and session management."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from payguard.config.settings import Settings, get_settings
from payguard.db.models import Base


def create_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create the async engine described by ``settings``."""
    settings = settings or get_settings()
    options: dict = {"echo": settings.DEBUG}
    if settings.ENVIRONMENT == "test":
        options["poolclass"] = NullPool
    elif not settings.DATABASE_URL.startswith("sqlite"):
        options["pool_size"] = settings.DATABASE_POOL_SIZE
        options["max_overflow"] = settings.DATABASE_MAX_OVERFLOW
    return create_async_engine(settings.DATABASE_URL, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine, create_tables: bool = False) -> None:
    """Verify connectivity, optionally creating missing tables.

    Schema migrations are managed outside this package; ``create_tables``
    is meant for local development and tests.
    """
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if create_tables:
            await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """Close database connections gracefully."""
    await engine.dispose()
