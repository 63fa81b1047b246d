"""Async SQLAlchemy engine and session factory.

Both are built from a ``Settings`` instance by the app factory and shared
by every request:

    engine = build_engine(settings)
    session_factory = build_session_factory(engine)

    async with session_factory() as db:
        result = await db.execute(select(Game))
"""
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from game_catalog.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the process-wide engine. Pool sizing only applies to server databases."""
    url = make_url(settings.DATABASE_URL)
    if url.get_backend_name() == "sqlite":
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
