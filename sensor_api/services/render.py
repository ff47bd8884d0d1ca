"""
Rendering of aggregation results as CSV or JSON.

CSV is produced one line at a time through a :class:`RowSink`, so a streamed
response never holds more than one formatted row. JSON is a single envelope
with the rows under ``data`` and ``prev``/``next`` links that slide the
``[from, before)`` window by its own width.

Both formats name value columns with the user-supplied field names; the
ordinal column names used by the query builder never appear in the output.

CHANGELOG:
- 2026-10-19: Stream CSV through write_csv so every line goes through the sink
- 2026-10-19: Split CSV emission behind the RowSink interface
- 2026-10-12: Initial creation

TODO:
- None
"""

import csv
import io
from collections.abc import Iterator, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

from starlette.datastructures import URL

from sensor_api.services.builder import AggregationResult, AggregationRow
from sensor_api.services.query import AggregationRequest

TIMESTAMP_KEY = "timestamp"


class RowSink(Protocol):
    """Destination for tabular output emitted one row at a time."""

    def write_header(self, columns: Sequence[str]) -> None: ...

    def write_row(self, values: Sequence[Any]) -> None: ...

    def finish(self) -> None: ...


class CsvTextSink:
    """RowSink that formats each row as CSV into a reusable text buffer.

    Call :meth:`drain` after every write to take the formatted line out of
    the buffer.
    """

    def __init__(self) -> None:
        self._buffer = io.StringIO()
        self._writer = csv.writer(self._buffer, lineterminator="\n")
        self.finished = False

    def write_header(self, columns: Sequence[str]) -> None:
        self._writer.writerow(columns)

    def write_row(self, values: Sequence[Any]) -> None:
        self._writer.writerow(["" if value is None else value for value in values])

    def finish(self) -> None:
        self.finished = True

    def drain(self) -> str:
        """Return and clear the text written since the last drain."""
        chunk = self._buffer.getvalue()
        self._buffer.seek(0)
        self._buffer.truncate(0)
        return chunk


def format_timestamp(value: datetime | str) -> str:
    """Render a timestamp as ISO-8601 UTC with a ``Z`` suffix.

    Strings are assumed to be formatted already and pass through unchanged.
    """
    if isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def csv_columns(result: AggregationResult) -> list[str]:
    """Return the CSV header for a result.

    ``timestamp`` comes first, then the requested fields in request order,
    then the label column, then any extra columns of the first row.
    """
    columns = [TIMESTAMP_KEY, *result.fields, result.label_key]
    if result.rows:
        columns.extend(key for key in result.rows[0].extras if key not in columns)
    return columns


def _row_values(row: AggregationRow, extra_keys: Sequence[str]) -> list[Any]:
    return [
        format_timestamp(row.timestamp),
        *row.values,
        row.label,
        *(row.extras.get(key) for key in extra_keys),
    ]


def write_csv(result: AggregationResult, sink: RowSink) -> Iterator[None]:
    """Emit a result into ``sink`` as a header followed by one row per bucket.

    This is a generator that pauses after every header or row it writes,
    so a caller can flush the sink between lines. ``sink.finish()`` is
    called once the generator is exhausted.

    Args:
        result: Normalized aggregation result.
        sink: Destination receiving the header, each row, then ``finish()``.
    """
    columns = csv_columns(result)
    sink.write_header(columns)
    yield
    extra_keys = columns[len(result.fields) + 2:]
    for row in result.rows:
        sink.write_row(_row_values(row, extra_keys))
        yield
    sink.finish()


def iter_csv(result: AggregationResult) -> Iterator[str]:
    """Yield a result as CSV text, one line per chunk.

    Intended as the body iterator of a streaming HTTP response.
    """
    sink = CsvTextSink()
    for _ in write_csv(result, sink):
        yield sink.drain()


def page_links(url: URL, request: AggregationRequest) -> dict[str, str]:
    """Build links to the adjacent windows of identical width.

    Every query parameter of ``url`` is kept except ``from`` and ``before``:

    - prev: ``[2*from - before, from)``
    - next: ``[before, 2*before - from)``

    Args:
        url: URL of the current request.
        request: Validated request holding the current window.

    Returns:
        dict: ``{"prev": ..., "next": ...}`` absolute URLs.
    """
    width = request.end - request.start
    prev_params = {
        "from": format_timestamp(request.start - width),
        "before": format_timestamp(request.start),
    }
    next_params = {
        "from": format_timestamp(request.end),
        "before": format_timestamp(request.end + width),
    }
    return {
        "prev": str(url.include_query_params(**prev_params)),
        "next": str(url.include_query_params(**next_params)),
    }


def render_json(result: AggregationResult, links: dict[str, str]) -> dict[str, Any]:
    """Render a result as the JSON response envelope.

    Args:
        result: Normalized aggregation result.
        links: Pagination links from :func:`page_links`.

    Returns:
        dict: ``{"links": links, "data": [...]}`` where each data item has
        the label, ``timestamp`` and one key per requested field.
    """
    data = []
    for row in result.rows:
        item: dict[str, Any] = {
            result.label_key: row.label,
            TIMESTAMP_KEY: format_timestamp(row.timestamp),
        }
        item.update(zip(result.fields, row.values))
        for key, value in row.extras.items():
            item.setdefault(key, value)
        data.append(item)

    return {"links": links, "data": data}
