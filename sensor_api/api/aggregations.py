"""
Aggregations API endpoint for rolled-up sensor telemetry.

Provides GET /api/v1/aggregations and GET /api/v1/aggregations.{format}.
The request is validated, executed as a single bucketed aggregation against
the rollup store, then rendered as JSON (with prev/next window links) or as
streamed CSV.

Validation failures are raised as QueryValidationError and ExecutionError
covers storage failures; both are turned into responses by the exception
handlers registered in sensor_api.main.

CHANGELOG:
- 2026-10-19: Log query shape as structured context
- 2026-10-19: Accept the output format as a path suffix
- 2026-10-12: Initial creation

TODO:
- None
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from sensor_api.api.deps import DbSession
from sensor_api.services.builder import aggregate
from sensor_api.services.query import OutputFormat, parse_aggregation_query
from sensor_api.services.render import iter_csv, page_links, render_json

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["aggregations"])


async def _aggregation_response(
    request: Request,
    db: DbSession,
    path_format: str | None = None,
) -> Response:
    query = parse_aggregation_query(request.query_params, path_format)
    result = await aggregate(db, query)

    logger.info(
        "Aggregation served",
        extra={
            "op": query.operator.value,
            "resolution": query.resolution,
            "fields": len(query.fields),
            "rows": len(result.rows),
            "format": query.format.value,
        },
    )

    if query.format is OutputFormat.CSV:
        return StreamingResponse(iter_csv(result), media_type="text/csv")
    return JSONResponse(render_json(result, page_links(request.url, query)))


@router.get("/aggregations")
async def get_aggregations(request: Request, db: DbSession) -> Response:
    """Get bucketed aggregations of source telemetry.

    Query parameters: ``op`` (mean, max, min), ``resolution`` (e.g. 20m),
    ``from`` and ``before`` (ISO-8601), ``fields`` (comma-separated), and
    exactly one of ``each.sources`` (comma-separated ids) or ``over.city``.
    ``format`` selects json (default) or csv.

    Args:
        request: Incoming request; its raw query parameters are validated.
        db: Async database session.

    Returns:
        Response: JSON envelope ``{"links", "data"}`` or a CSV stream.
    """
    return await _aggregation_response(request, db)


@router.get("/aggregations.{format}")
async def get_aggregations_with_format(
    format: str,
    request: Request,
    db: DbSession,
) -> Response:
    """Same as GET /api/v1/aggregations with the format taken from the path.

    The path suffix wins over a ``format`` query parameter.
    """
    return await _aggregation_response(request, db, path_format=format)
