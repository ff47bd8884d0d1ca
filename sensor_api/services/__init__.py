"""
Aggregation query services: validation, query building and rendering.

CHANGELOG:
- 2026-10-12: Initial creation

TODO:
- None
"""

from sensor_api.services.builder import aggregate, build_aggregation_query
from sensor_api.services.errors import (
    AggregationError,
    ExecutionError,
    QueryRangeError,
    QuerySyntaxError,
    QueryValidationError,
)
from sensor_api.services.query import AggregationRequest, parse_aggregation_query

__all__ = [
    "AggregationError",
    "AggregationRequest",
    "ExecutionError",
    "QueryRangeError",
    "QuerySyntaxError",
    "QueryValidationError",
    "aggregate",
    "build_aggregation_query",
    "parse_aggregation_query",
]
