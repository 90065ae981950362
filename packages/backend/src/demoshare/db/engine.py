"""Async SQLAlchemy engine and session factory.

One engine with connection pooling for the whole process; each request gets
its own AsyncSession through the get_db dependency.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from demoshare.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite (local dev, tests) does not take pool sizing arguments.
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 5, "max_overflow": 15, "pool_pre_ping": True}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_kwargs(settings.database_url),
)

# Session factory: each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_all() -> None:
    """Create every table that does not exist yet (dev + CLI init-db)."""
    from demoshare.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
