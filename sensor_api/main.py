"""
FastAPI application entry point for the sensor API.

Registers the routers, the error handlers that turn aggregation errors into
``{"name", "message"}`` responses, and the startup/shutdown lifespan.

CHANGELOG:
- 2026-10-19: Log rejected queries with structured context
- 2026-10-19: Register sources and health routers
- 2026-10-12: Initial creation

TODO:
- None
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sensor_api.api.aggregations import router as aggregations_router
from sensor_api.api.health import router as health_router
from sensor_api.api.sources import router as sources_router
from sensor_api.config import get_settings
from sensor_api.db.session import dispose_engine
from sensor_api.logging_config import setup_logging
from sensor_api.services.errors import ExecutionError, QueryValidationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: configure logging, release DB pool on exit."""
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger.info("Sensor API starting")
    yield
    await dispose_engine()


app = FastAPI(
    title="Sensor API",
    description="Rolled-up aggregations of sensor telemetry over arbitrary time windows.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(aggregations_router)
app.include_router(sources_router)
app.include_router(health_router)


@app.exception_handler(QueryValidationError)
async def query_validation_error_handler(
    request: Request, exc: QueryValidationError,
) -> JSONResponse:
    """Report a user-correctable query error as HTTP 400."""
    logger.info(
        "Query rejected",
        extra={"path": request.url.path, "error": exc.name, "reason": exc.message},
    )
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(ExecutionError)
async def execution_error_handler(request: Request, exc: ExecutionError) -> JSONResponse:
    """Log a storage failure in full and return a generic HTTP 500."""
    logger.error(
        "Storage failure on %s: %s", request.url.path, exc.message, exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"name": exc.name, "message": "Internal server error"},
    )


@app.get("/")
async def ping() -> dict:
    """Simple ping endpoint.

    Returns:
        dict: JSON object with application status.
    """
    return {"status": "ok"}
