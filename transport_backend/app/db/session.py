"""
Database session configuration.

Async SQLAlchemy engine and session factory shared by the trip, fleet and
audit tables. PostgreSQL (asyncpg) in production; any async URL works, so
pool sizing is only applied to server databases.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from transport_backend.app.core.config import settings


def _engine_options(url: str) -> dict:
    options = {"echo": settings.db_echo, "future": True}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()


async def init_models() -> None:
    """Create any missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """
    FastAPI dependency for database sessions.

    One session per request; services commit or roll back themselves.
    """
    async with AsyncSessionLocal() as session:
        yield session
