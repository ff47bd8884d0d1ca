"""
Read-only async database access for the sensor API.

The API never writes: every pooled connection is opened with
``default_transaction_read_only`` and a ``statement_timeout`` so a runaway
aggregation is cancelled by PostgreSQL rather than holding a connection
indefinitely. The engine and session factory are module-level singletons
created on first use and released by :func:`dispose_engine` at shutdown.

CHANGELOG:
- 2026-10-19: Read-only connections with statement timeout and pool sizing
- 2026-10-19: Add dispose_engine() for application shutdown
- 2026-10-12: Initial creation

TODO:
- None
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from sensor_api.config import Settings, get_settings

# Created lazily by init_engine(), cleared by dispose_engine().
async_engine: AsyncEngine | None = None
async_session_factory: async_sessionmaker[AsyncSession] | None = None


def engine_options(settings: Settings) -> dict[str, Any]:
    """Return ``create_async_engine`` keyword arguments for *settings*.

    The asyncpg ``server_settings`` are applied to every new connection.
    """
    server_settings = {
        "application_name": settings.DB_APPLICATION_NAME,
        "default_transaction_read_only": "on",
        "statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS),
    }
    return {
        "echo": settings.DB_ECHO,
        "pool_size": settings.DB_POOL_SIZE,
        "pool_pre_ping": True,
        "connect_args": {"server_settings": server_settings},
    }


def create_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create the async engine for the rollup store.

    Args:
        settings: Configuration to use; loaded from the environment if omitted.

    Returns:
        AsyncEngine: Engine whose connections are read-only.
    """
    settings = settings or get_settings()
    return create_async_engine(settings.DATABASE_URL, **engine_options(settings))


def init_engine() -> None:
    """Create the module-level engine and session factory if not done yet."""
    global async_engine, async_session_factory  # noqa: PLW0603
    if async_engine is None:
        async_engine = create_engine()
        async_session_factory = async_sessionmaker(async_engine, expire_on_commit=False)


async def dispose_engine() -> None:
    """Close all pooled connections and reset the module-level singletons."""
    global async_engine, async_session_factory  # noqa: PLW0603
    if async_engine is not None:
        await async_engine.dispose()
    async_engine = None
    async_session_factory = None


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request.

    Yields:
        AsyncSession: Session bound to the shared read-only engine.
    """
    init_engine()
    assert async_session_factory is not None, "Session factory not initialized"
    async with async_session_factory() as session:
        yield session
