"""
Database package for SQLAlchemy models and session management.

CHANGELOG:
- 2026-10-19: Export engine_options
- 2026-10-12: Initial creation

TODO:
- None
"""

from sensor_api.db.models import Base, Rollup5Min, Source
from sensor_api.db.session import (
    create_engine,
    dispose_engine,
    engine_options,
    get_async_session,
    init_engine,
)

__all__ = [
    "Base",
    "Rollup5Min",
    "Source",
    "create_engine",
    "dispose_engine",
    "engine_options",
    "get_async_session",
    "init_engine",
]
