"""
Sources API endpoint.

Provides GET /api/v1/sources/{source_id} returning the public metadata of a
registered source. Registration itself is handled elsewhere.

CHANGELOG:
- 2026-10-12: Initial creation

TODO:
- None
"""

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from sensor_api.api.deps import DbSession
from sensor_api.services.sources import get_source

router = APIRouter(prefix="/api/v1", tags=["sources"])


class SourceResponse(BaseModel):
    """Public view of a registered source.

    Attributes:
        id: Source identifier.
        data: Source metadata; the owner's email is never included.
    """

    id: str
    data: dict[str, Any] | None = None


@router.get("/sources/{source_id}", response_model=SourceResponse)
async def read_source(source_id: str, db: DbSession) -> SourceResponse:
    """Get a registered source by id.

    Args:
        source_id: Identifier of the source.
        db: Async database session.

    Returns:
        SourceResponse: Source id and metadata.

    Raises:
        HTTPException: 404 if no source has this id.
    """
    source = await get_source(db, source_id)
    if source is None:
        raise HTTPException(status_code=404, detail="Source not found")
    return SourceResponse(id=source.id.strip(), data=source.data)
