"""
Source registry lookups.

CHANGELOG:
- 2026-10-12: Initial creation

TODO:
- None
"""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sensor_api.db.models import Source
from sensor_api.services.errors import ExecutionError


async def get_source(session: AsyncSession, source_id: str) -> Source | None:
    """Fetch a registered source by id.

    Args:
        session: Async SQLAlchemy session for database operations.
        source_id: Identifier of the source.

    Returns:
        Source | None: The source, or None if no source has this id.

    Raises:
        ExecutionError: The database call failed.
    """
    try:
        result = await session.execute(select(Source).where(Source.id == source_id))
        return result.scalar_one_or_none()
    except (SQLAlchemyError, OSError) as exc:
        raise ExecutionError("Source lookup failed") from exc
