"""
Error taxonomy for the aggregation query pipeline.

Validation errors are user-correctable and map to HTTP 400 with a
``{"name", "message"}`` body. Execution errors come from the storage layer,
are logged with full detail and collapse to a generic HTTP 500.

CHANGELOG:
- 2026-10-12: Initial creation

TODO:
- None
"""


class AggregationError(Exception):
    """Base class for errors raised while serving an aggregation query.

    Attributes:
        name: Stable error name reported to API clients.
        message: Human-readable description of the failure.
    """

    name = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Return the client-facing error body."""
        return {"name": self.name, "message": self.message}


class QueryValidationError(AggregationError):
    """A query parameter is missing, malformed or out of bounds."""


class QuerySyntaxError(QueryValidationError):
    """A required query parameter is missing or cannot be parsed."""

    name = "SyntaxError"


class QueryRangeError(QueryValidationError):
    """The requested window would produce too many result rows."""

    name = "RangeError"


class ExecutionError(AggregationError):
    """The storage layer failed to execute a query."""

    name = "ExecutionError"
