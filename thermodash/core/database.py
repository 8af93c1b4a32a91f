"""
Thermo Dashboard - Database Configuration
Async SQLAlchemy (SQLite via aiosqlite by default)
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from thermodash.core.config import settings


def make_engine(database_url: str) -> AsyncEngine:
    """Create an async engine for the given URL."""
    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
    )


def make_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# Default engine and session factory
engine = make_engine(settings.database_url)
async_session_maker = make_session_maker(engine)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


async def init_models(bind: AsyncEngine = engine) -> None:
    """Create missing tables (local SQLite setups run without alembic)."""
    # Import models so they register on Base.metadata
    import thermodash.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
