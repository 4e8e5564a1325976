"""Database session configuration."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from quotakeeper.core.config import settings

# Pool sizing is per process. Each request holds at most one connection for
# the duration of its lazy reconcile + increment, and the reconciliation sweep
# holds one more while it walks the due accounts.
POOL_SIZE = settings.db_pool_size
MAX_OVERFLOW = settings.db_pool_max_overflow

_DATABASE_URI = str(settings.SQLALCHEMY_ASYNC_DATABASE_URI)


def _engine_kwargs() -> dict[str, Any]:
    """Engine options for the configured backend.

    Postgres gets the pooled, timeout-bounded setup; anything else (the SQLite
    URLs used in local experiments) gets driver defaults.
    """
    if not _DATABASE_URI.startswith("postgresql"):
        return {}

    connect_args: dict[str, Any] = {
        "server_settings": {
            # Kill idle transactions after 5 minutes
            "idle_in_transaction_session_timeout": "300000",
        },
        "command_timeout": 60,
    }
    if settings.POSTGRES_SSLMODE == "disable":
        connect_args["ssl"] = False

    return {
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_timeout": 30,
        # Conditional UPDATEs re-evaluate their WHERE clause against the latest
        # committed row version, so READ COMMITTED is enough for atomicity.
        "isolation_level": "READ COMMITTED",
        "connect_args": connect_args,
    }


async_engine = create_async_engine(_DATABASE_URI, **_engine_kwargs())

AsyncSessionLocal = async_sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=async_engine
)


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session that can be used as a context manager.

    Yields:
        AsyncSession: An async database session

    Example:
    -------
        async with get_db_context() as db:
            await db.execute(...)

    """
    async with AsyncSessionLocal() as db:
        try:
            yield db
        finally:
            try:
                await db.close()
            except Exception:
                # Connection may have been closed by server due to idle timeout; ignore on close
                pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session to be used in dependency injection.

    Yields:
    ------
        AsyncSession: An async database session

    """
    async with AsyncSessionLocal() as db:
        try:
            yield db
        finally:
            try:
                await db.close()
            except Exception:
                # Connection may have been closed by server due to idle timeout; ignore on close
                pass
