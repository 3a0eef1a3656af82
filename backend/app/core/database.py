"""
Database engine and sessions

The engine is built on first use, so importing models never needs a
reachable database. Plain DATABASE_URLs are mapped to their async drivers
(asyncpg for PostgreSQL, aiosqlite for SQLite).
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Dict, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.core.logging_config import logger

Base = declarative_base()

ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url(url: Optional[str] = None) -> str:
    """DATABASE_URL (or url) with its async driver filled in"""
    url = url or settings.DATABASE_URL
    for plain, async_prefix in ASYNC_DRIVERS.items():
        if url.startswith(plain):
            return async_prefix + url[len(plain):]
    return url


def engine_options(url: str) -> Dict[str, Any]:
    """
    Keyword arguments for create_async_engine.

    SQLite and dev-mode PostgreSQL open a connection per checkout (NullPool);
    production PostgreSQL keeps a bounded pool sized by the DB_POOL_* settings.
    """
    options: Dict[str, Any] = {"echo": settings.DB_ECHO}
    if url.startswith("sqlite"):
        options["poolclass"] = NullPool
        options["connect_args"] = {"check_same_thread": False}
    elif settings.is_dev_mode():
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=True,
        )
    return options


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        url = get_database_url()
        _engine = create_async_engine(url, **engine_options(url))
        logger.info(f"[DB] Engine ready for {make_url(url).render_as_string(hide_password=True)}")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        # Objects stay readable after commit; endpoints build responses from them
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    One unit of work. Whatever is still pending at the end is committed;
    an exception rolls everything back and propagates.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            if session.new or session.dirty or session.deleted:
                await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session dependency"""
    async with session_scope() as session:
        yield session


async def init_db():
    """Create missing tables for every registered model"""
    import app.models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"[DB] Schema ready ({len(Base.metadata.tables)} tables)")


async def close_db():
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("[DB] Engine disposed")
    _engine = None
    _session_factory = None
