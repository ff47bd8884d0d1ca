"""
Aggregation query parsing and validation.

Turns the raw string query parameters of ``GET /api/v1/aggregations`` into a
typed :class:`AggregationRequest` in a single pass, or raises a
:class:`~sensor_api.services.errors.QueryValidationError` naming the first
offending parameter. No I/O happens here.

Supported query parameters:

- ``op``: ``mean`` (default), ``max`` or ``min``
- ``resolution``: bucket width such as ``45s``, ``20m`` or ``1h``
- ``from``, ``before``: ISO-8601 bounds of the half-open window
- ``each.sources``: comma-separated source ids, one series per source
- ``over.city``: aggregate over every source whose ``city`` matches
- ``fields``: comma-separated field names, in output order
- ``format``: ``json`` (default) or ``csv``; a ``.csv`` path suffix wins

CHANGELOG:
- 2026-10-19: Bound resolution and window to representable values
- 2026-10-19: Validate op against the supported operators
- 2026-10-12: Initial creation

TODO:
- None
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from sensor_api.services.errors import QueryRangeError, QuerySyntaxError

# Upper bound on the number of buckets a single query may produce.
MAX_RESPONSE_COUNT = 1000

# Seconds per resolution unit suffix.
RESOLUTION_UNITS = {"s": 1, "m": 60, "h": 60 * 60}

# Resolution is bound as a 32-bit integer parameter.
MAX_RESOLUTION_SECONDS = 2**31 - 1

_ONE_MICROSECOND = timedelta(microseconds=1)

# Source attributes that can be aggregated over with ``over.<attribute>``.
SUPPORTED_ATTRIBUTES = ("city",)


class Operator(str, Enum):
    """Aggregation applied per field and bucket."""

    MEAN = "mean"
    MAX = "max"
    MIN = "min"


class OutputFormat(str, Enum):
    """Response body format."""

    JSON = "json"
    CSV = "csv"


@dataclass(frozen=True)
class ExplicitSources:
    """Compute one series per listed source."""

    source_ids: tuple[str, ...]


@dataclass(frozen=True)
class ByAttribute:
    """Merge every source whose metadata ``attribute`` equals ``value``."""

    attribute: str
    value: str


SourceSelection = ExplicitSources | ByAttribute


@dataclass(frozen=True)
class AggregationRequest:
    """A validated aggregation query.

    Attributes:
        operator: Aggregation operator.
        resolution: Bucket width in seconds, always positive.
        start: Inclusive lower bound of the window (``from``), UTC.
        end: Exclusive upper bound of the window (``before``), UTC.
        selection: Which sources to aggregate and how to label the rows.
        fields: Requested field names in request order, never empty.
        format: Output format.
    """

    operator: Operator
    resolution: int
    start: datetime
    end: datetime
    selection: SourceSelection
    fields: tuple[str, ...]
    format: OutputFormat = OutputFormat.JSON

    @property
    def estimated_rows(self) -> int:
        """Number of buckets the window spans at this resolution."""
        return estimate_row_count(self.start, self.end, self.resolution)


def parse_resolution(value: str | None) -> int | None:
    """Return the number of seconds represented by a resolution string.

    The string is a run of ASCII digits followed by one unit suffix
    (``s``, ``m`` or ``h``): ``"20m"`` is 1200, ``"1h"`` is 3600.

    Args:
        value: Raw resolution parameter.

    Returns:
        Number of seconds in ``1..MAX_RESOLUTION_SECONDS``, or None if the
        value is missing, malformed, has no or an unknown suffix, is zero
        or is too large.
    """
    if not value or len(value) < 2:
        return None

    digits, unit = value[:-1], value[-1]
    multiplier = RESOLUTION_UNITS.get(unit)
    if multiplier is None:
        return None
    if not (digits.isascii() and digits.isdigit()):
        return None
    if len(digits.lstrip("0")) > len(str(MAX_RESOLUTION_SECONDS)):
        return None

    seconds = int(digits) * multiplier
    if not 0 < seconds <= MAX_RESOLUTION_SECONDS:
        return None
    return seconds


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, treating naive values as UTC.

    Args:
        value: Raw timestamp parameter.

    Returns:
        Timezone-aware datetime in UTC, or None if missing or unparsable.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError):
        # Offsets can push a value just past year 1 or 9999.
        return None


def estimate_row_count(start: datetime, end: datetime, resolution: int) -> int:
    """Return ``ceil((end - start) / resolution)``.

    Args:
        start: Inclusive window start.
        end: Exclusive window end.
        resolution: Bucket width in seconds.

    Returns:
        Estimated number of buckets; zero or negative for empty windows.
    """
    micros = (end - start) // _ONE_MICROSECOND
    return -(-micros // (resolution * 1_000_000))


def adjacent_windows_fit(start: datetime, end: datetime) -> bool:
    """Return whether the windows just before and after ``[start, end)`` are
    representable as datetimes.
    """
    width = end - start
    try:
        start - width
        end + width
    except OverflowError:
        return False
    return True


def _split_list(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item for item in value.split(",") if item)


def _parse_selection(params: Mapping[str, str]) -> SourceSelection:
    source_ids = _split_list(params.get("each.sources"))
    attributes = [
        ByAttribute(attribute=attribute, value=params[f"over.{attribute}"])
        for attribute in SUPPORTED_ATTRIBUTES
        if params.get(f"over.{attribute}")
    ]

    modes = len(attributes) + (1 if source_ids else 0)
    if modes != 1:
        raise QuerySyntaxError(
            "Must specify exactly one of each.sources or "
            + " or ".join(f"over.{a}" for a in SUPPORTED_ATTRIBUTES)
        )

    if source_ids:
        return ExplicitSources(source_ids=source_ids)
    return attributes[0]


def _parse_format(params: Mapping[str, str], path_format: str | None) -> OutputFormat:
    raw = path_format or params.get("format") or OutputFormat.JSON.value
    try:
        return OutputFormat(raw.lower())
    except ValueError:
        raise QuerySyntaxError(
            f"Unsupported format: {raw}. Must be one of: "
            + ", ".join(f.value for f in OutputFormat)
        ) from None


def parse_aggregation_query(
    params: Mapping[str, str],
    path_format: str | None = None,
) -> AggregationRequest:
    """Validate raw query parameters and build an AggregationRequest.

    Checks run in a fixed order and the first failure is raised:

    1. exactly one source-selection mode
    2. non-empty ``fields``
    3. parsable ``resolution``
    4. parsable ``from`` and ``before`` whose adjacent windows are
       representable (pagination links stay computable)
    5. bucket count within :data:`MAX_RESPONSE_COUNT`
    6. supported ``op``
    7. supported output format

    Args:
        params: Raw query parameters (any str -> str mapping).
        path_format: Format taken from a ``.<format>`` path suffix, if any.
            Takes precedence over the ``format`` parameter.

    Returns:
        AggregationRequest: The validated request.

    Raises:
        QuerySyntaxError: A parameter is missing or malformed.
        QueryRangeError: The window spans more than MAX_RESPONSE_COUNT buckets.
    """
    selection = _parse_selection(params)

    fields = _split_list(params.get("fields"))
    if not fields:
        raise QuerySyntaxError("Must specify fields parameter")

    resolution = parse_resolution(params.get("resolution"))
    if resolution is None:
        raise QuerySyntaxError("Must specify resolution parameter")

    start = parse_timestamp(params.get("from"))
    end = parse_timestamp(params.get("before"))
    if start is None or end is None or not adjacent_windows_fit(start, end):
        raise QuerySyntaxError("Must specify valid from and before parameters")

    if estimate_row_count(start, end, resolution) > MAX_RESPONSE_COUNT:
        raise QueryRangeError(
            "Time range represents more than the maximum "
            f"{MAX_RESPONSE_COUNT} possible results per query"
        )

    raw_op = params.get("op") or Operator.MEAN.value
    try:
        operator = Operator(raw_op)
    except ValueError:
        raise QuerySyntaxError(
            f"Invalid op: {raw_op}. Must be one of: "
            + ", ".join(o.value for o in Operator)
        ) from None

    return AggregationRequest(
        operator=operator,
        resolution=resolution,
        start=start,
        end=end,
        selection=selection,
        fields=fields,
        format=_parse_format(params, path_format),
    )
