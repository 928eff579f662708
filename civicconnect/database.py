from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import text
from civicconnect.config import settings
import structlog

logger = structlog.get_logger()


class Base(DeclarativeBase):
    pass


def engine_options(database_url: str) -> tuple[URL, dict]:
    """
    Split a libpq-style URL into what asyncpg accepts.

    asyncpg rejects ``sslmode`` in the query string; it is lifted out and
    turned into ``connect_args`` (DB_SSL forces it on as well).
    """
    url = make_url(database_url)
    query = dict(url.query)
    sslmode = query.pop("sslmode", None)
    connect_args = {}
    if settings.DB_SSL or sslmode in ("require", "verify-ca", "verify-full"):
        connect_args["ssl"] = "require"
    return url.set(query=query), connect_args


_url, _connect_args = engine_options(settings.DATABASE_URL)

engine: AsyncEngine = create_async_engine(
    _url,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_timeout=30,
    pool_recycle=settings.DB_POOL_RECYCLE,
    pool_pre_ping=True,
    echo=settings.DEBUG,
    connect_args=_connect_args,
)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One unit of work: commit on success, roll back on any error.

    Workflow cascades run inside it, so a failure anywhere in a cascade
    leaves no partial state behind.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db():
    """FastAPI dependency: one request, one session_scope()."""
    async with session_scope() as session:
        yield session


async def init_db():
    async with engine.begin() as conn:
        version = (await conn.execute(text("SHOW server_version"))).scalar()
        logger.info("db_connected", server_version=version, ssl=bool(_connect_args))


async def close_db():
    await engine.dispose()
    logger.info("db_disconnected")
