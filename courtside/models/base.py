"""
SQLAlchemy declarative base and async engine/session factory.
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from courtside.config import settings

# Seconds a SQLite connection waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 30


class Base(DeclarativeBase):
    pass


def make_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for ``url``; SQLite files get a busy timeout for concurrent writers."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo, connect_args={"timeout": SQLITE_BUSY_TIMEOUT})
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine(settings.async_database_url)

AsyncSessionFactory: async_sessionmaker[AsyncSession] = make_session_factory(engine)
