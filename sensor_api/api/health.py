"""
Health check endpoint that probes database connectivity.

Returns a JSON response indicating overall system status and the status of
the database. Returns HTTP 200 when the database answers, or HTTP 503 when
it does not.

CHANGELOG:
- 2026-10-12: Initial creation

TODO:
- None
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from sensor_api.db.session import get_async_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_db() -> str:
    """Probe the database with a simple SELECT 1 query.

    Returns:
        "ok" if the query succeeds, "error" otherwise.
    """
    try:
        async for session in get_async_session():
            await session.execute(text("SELECT 1"))
            return "ok"
    except Exception:
        logger.warning("Health check: DB probe failed", exc_info=True)
        return "error"
    return "error"  # pragma: no cover


@router.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint probing the database.

    Returns:
        JSONResponse: JSON with status and db fields.
            HTTP 200 when the database is ok, HTTP 503 when degraded.
    """
    db_status = await _check_db()

    all_ok = db_status == "ok"
    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ok" if all_ok else "degraded",
            "db": db_status,
        },
    )
