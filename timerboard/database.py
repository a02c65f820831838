"""
Database access for the timerboard (SQLAlchemy Core on asyncpg).

The app talks to Postgres through one lazily created AsyncEngine. Query
functions in ``timerboard.queries`` take the connection yielded by
``get_connection`` (reads) or ``get_transaction`` (writes, committed on exit).
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .config import get_database_url, is_sql_echo_enabled
from .tables import metadata  # noqa: F401 - exported for Alembic

_ASYNC_SCHEME = "postgresql+asyncpg://"
_SYNC_SCHEME = "postgresql://"

_engine: AsyncEngine | None = None


def _with_scheme(url: str, scheme: str) -> str:
    """Rewrite a postgres URL to use the given driver scheme."""
    for known in (_ASYNC_SCHEME, _SYNC_SCHEME, "postgres://"):
        if url.startswith(known):
            return scheme + url[len(known):]
    return url


def _require_database_url() -> str:
    url = get_database_url()
    if not url:
        raise ValueError("DATABASE_URL environment variable must be set.")
    return url


def get_engine() -> AsyncEngine:
    """Return the shared engine, creating it on first use."""
    global _engine
    if _engine is None:
        # The scheduler tick and API requests share one small pool
        _engine = create_async_engine(
            _with_scheme(_require_database_url(), _ASYNC_SCHEME),
            echo=is_sql_echo_enabled(),
            pool_size=5,
            max_overflow=5,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
    return _engine


def set_engine(engine: AsyncEngine | None) -> None:
    """Swap the engine (integration tests point this at a scratch database)."""
    global _engine
    _engine = engine


@asynccontextmanager
async def get_connection() -> AsyncGenerator[AsyncConnection, None]:
    """
    Connection for read queries.

    Usage:
        async with get_connection() as conn:
            fleet = await get_fleet(conn, fleet_id)
    """
    async with get_engine().connect() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncGenerator[AsyncConnection, None]:
    """Connection inside a transaction: commits on exit, rolls back on error."""
    async with get_engine().begin() as conn:
        yield conn


async def close_engine() -> None:
    """Dispose of the pool. Called from the FastAPI lifespan on shutdown."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None


def is_configured() -> bool:
    return bool(get_database_url())


def get_sync_database_url() -> str:
    """psycopg2 URL for Alembic, which runs migrations synchronously."""
    try:
        url = _require_database_url()
    except ValueError:
        raise ValueError("DATABASE_URL must be set for migrations") from None
    return _with_scheme(url, _SYNC_SCHEME)
