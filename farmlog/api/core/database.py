"""
Database configuration and session management
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from farmlog.api.config import settings


def _get_async_url(url: str) -> str:
    """Convert database URL to async variant"""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    return url


def _engine_kwargs(url: str, timeout: float) -> dict:
    """Engine options, with a bounded wait on every driver"""
    kwargs = {"echo": settings.DEBUG, "future": True}
    if url.startswith("sqlite"):
        # Seconds to wait on a locked database
        kwargs["connect_args"] = {"timeout": timeout}
    else:
        kwargs["pool_size"] = 20
        kwargs["max_overflow"] = 10
        kwargs["pool_timeout"] = timeout
        kwargs["connect_args"] = {"timeout": timeout, "command_timeout": timeout}
    return kwargs


database_url = _get_async_url(settings.DATABASE_URL)

# Create async engine
engine = create_async_engine(database_url, **_engine_kwargs(database_url, settings.DB_TIMEOUT_SECONDS))

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Base class for models
Base = declarative_base()


async def get_db() -> AsyncSession:
    """Dependency for getting database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
