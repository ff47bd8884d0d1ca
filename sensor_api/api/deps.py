"""
FastAPI dependency injection providers.

CHANGELOG:
- 2026-10-12: Initial creation

TODO:
- None
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sensor_api.db.session import get_async_session

# Type alias for injecting an async DB session via FastAPI Depends().
# Usage in route handlers:
#   async def my_route(db: DbSession):
#       result = await db.execute(...)
DbSession = Annotated[AsyncSession, Depends(get_async_session)]
