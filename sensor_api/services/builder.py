"""
Aggregation query builder and executor.

Translates a validated :class:`~sensor_api.services.query.AggregationRequest`
into a parameterized statement against the rollup store and normalizes the
returned rows.

Every user-supplied value (field names, source ids, attribute name and value,
operator, window bounds, resolution) travels as a bound parameter. Field
names are referenced from the statement only by ordinal: field ``i`` is read
through the ``:field{i}`` parameter and projected as column ``"{i}"``. The
:class:`FieldMap` built once per request is the single source of truth for
that ordinal <-> name mapping, in both directions.

The store exposes two SQL functions that do the per-field math:

- ``rollup_agg(data)``: merges the rollup states of a group of rows.
- ``rollup_pick(state, fields, op)``: reduces a merged state to one JSON
  object with the ``op`` value (mean, max or min) of each requested field.

CHANGELOG:
- 2026-10-19: Derive the sources join from the rollup_5min foreign key
- 2026-10-19: Keep explicit sources in request order
- 2026-10-12: Initial creation

TODO:
- None
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import ARRAY, DateTime, Integer, Text, bindparam, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import TextClause

from sensor_api.db.models import SOURCE_ID_LENGTH, Rollup5Min, Source
from sensor_api.services.errors import ExecutionError
from sensor_api.services.query import AggregationRequest, ByAttribute, ExplicitSources

logger = logging.getLogger(__name__)

# Result column holding the row label (source id or attribute value).
LABEL_COLUMN = "label"
TIMESTAMP_COLUMN = "timestamp"
SOURCE_LABEL = "source"

# Truncate a rollup timestamp down to a multiple of :resolution seconds.
BUCKET_EXPR = "to_timestamp(floor(EXTRACT(EPOCH FROM r.ts) / :resolution) * :resolution)"
PICK_EXPR = "rollup_pick(rollup_agg(r.data), :fields, :op)"

# r.source = s.id, following the rollup_5min -> sources foreign key.
_SOURCE_FK = next(iter(Rollup5Min.__table__.c.source.foreign_keys))
SOURCE_JOIN = f"r.{_SOURCE_FK.parent.name} = s.{_SOURCE_FK.column.name}"


@dataclass(frozen=True)
class FieldMap:
    """Bidirectional mapping between field ordinals and field names.

    Attributes:
        names: Field names in request order; the index is the ordinal.
    """

    names: tuple[str, ...]

    @classmethod
    def from_fields(cls, fields: Sequence[str]) -> "FieldMap":
        """Assign ordinals 0..n-1 to ``fields`` in order."""
        return cls(names=tuple(fields))

    def __len__(self) -> int:
        return len(self.names)

    @staticmethod
    def param(ordinal: int) -> str:
        """Bind parameter name carrying the field name for ``ordinal``."""
        return f"field{ordinal}"

    @staticmethod
    def column(ordinal: int) -> str:
        """Result column name holding the value for ``ordinal``."""
        return str(ordinal)

    @property
    def columns(self) -> tuple[str, ...]:
        """Result column names in request order."""
        return tuple(self.column(i) for i in range(len(self.names)))

    def ordinal(self, column: str) -> int | None:
        """Return the ordinal behind a result column, or None if not a field column."""
        if not (column.isascii() and column.isdigit()):
            return None
        ordinal = int(column)
        if ordinal >= len(self.names) or self.column(ordinal) != column:
            return None
        return ordinal

    def name(self, column: str) -> str | None:
        """Return the user field name for a result column, or None."""
        ordinal = self.ordinal(column)
        return None if ordinal is None else self.names[ordinal]

    def bind_values(self) -> dict[str, str]:
        """Return ``{"field0": name0, ...}`` for the statement parameters."""
        return {self.param(i): name for i, name in enumerate(self.names)}


@dataclass(frozen=True)
class AggregationQuery:
    """A ready-to-execute aggregation statement.

    Attributes:
        statement: Parameterized SQL with typed bind parameters.
        params: Values for every bind parameter in ``statement``.
        field_map: Ordinal mapping used to build ``statement``.
        label_key: Name under which the row label is rendered.
    """

    statement: TextClause
    params: dict[str, Any]
    field_map: FieldMap
    label_key: str


@dataclass(frozen=True)
class AggregationRow:
    """One bucket of one series.

    Attributes:
        label: Source id, or the attribute value in by-attribute mode.
        timestamp: Bucket start.
        values: Aggregated value per requested field, in request order.
            None means the bucket holds no data for that field.
        extras: Any result columns that are neither label, timestamp nor
            a field column.
    """

    label: str
    timestamp: datetime | str
    values: tuple[float | None, ...]
    extras: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AggregationResult:
    """Normalized rows plus what the renderer needs to name them."""

    rows: list[AggregationRow]
    field_map: FieldMap
    label_key: str

    @property
    def fields(self) -> tuple[str, ...]:
        return self.field_map.names


def _field_selectors(field_map: FieldMap) -> str:
    return ", ".join(
        f'float8(rollup.data ->> :{field_map.param(i)}) AS "{field_map.column(i)}"'
        for i in range(len(field_map))
    )


def _common_bindparams(field_map: FieldMap) -> list:
    return [
        bindparam("resolution", type_=Integer),
        bindparam("start", type_=DateTime(timezone=True)),
        bindparam("end", type_=DateTime(timezone=True)),
        bindparam("fields", type_=ARRAY(Text)),
        bindparam("op", type_=Text),
        *(bindparam(field_map.param(i), type_=Text) for i in range(len(field_map))),
    ]


def _explicit_sources_sql(field_map: FieldMap) -> str:
    # One LATERAL subquery per listed source: series are never merged.
    return (
        f"SELECT sourcelist.source AS {LABEL_COLUMN}, "
        f'rollup.bucket AS "{TIMESTAMP_COLUMN}", '
        f"{_field_selectors(field_map)} "
        "FROM unnest(:sources) WITH ORDINALITY AS sourcelist(source, position), "
        "LATERAL ("
        f"SELECT {BUCKET_EXPR} AS bucket, {PICK_EXPR} AS data "
        f"FROM {Rollup5Min.__tablename__} AS r "
        f"WHERE r.source = CAST(sourcelist.source AS CHAR({SOURCE_ID_LENGTH})) "
        "AND r.ts >= :start AND r.ts < :end "
        "GROUP BY bucket"
        ") AS rollup "
        "ORDER BY sourcelist.position, rollup.bucket"
    )


def _by_attribute_sql(field_map: FieldMap) -> str:
    return (
        f"SELECT :attribute_value AS {LABEL_COLUMN}, "
        f'rollup.bucket AS "{TIMESTAMP_COLUMN}", '
        f"{_field_selectors(field_map)} "
        "FROM ("
        f"SELECT {BUCKET_EXPR} AS bucket, {PICK_EXPR} AS data "
        f"FROM {Rollup5Min.__tablename__} AS r "
        f"JOIN {Source.__tablename__} AS s ON {SOURCE_JOIN} "
        "WHERE s.data ->> :attribute = :attribute_value "
        "AND r.ts >= :start AND r.ts < :end "
        "GROUP BY bucket"
        ") AS rollup "
        "ORDER BY rollup.bucket"
    )


def build_aggregation_query(request: AggregationRequest) -> AggregationQuery:
    """Build the parameterized aggregation statement for a request.

    Args:
        request: Validated aggregation request.

    Returns:
        AggregationQuery: Statement, bound values and naming metadata.
    """
    field_map = FieldMap.from_fields(request.fields)
    bindparams = _common_bindparams(field_map)
    params: dict[str, Any] = {
        "resolution": request.resolution,
        "start": request.start,
        "end": request.end,
        "fields": list(field_map.names),
        "op": request.operator.value,
        **field_map.bind_values(),
    }

    selection = request.selection
    if isinstance(selection, ExplicitSources):
        sql = _explicit_sources_sql(field_map)
        bindparams.append(bindparam("sources", type_=ARRAY(Text)))
        params["sources"] = list(selection.source_ids)
        label_key = SOURCE_LABEL
    elif isinstance(selection, ByAttribute):
        sql = _by_attribute_sql(field_map)
        bindparams.append(bindparam("attribute", type_=Text))
        bindparams.append(bindparam("attribute_value", type_=Text))
        params["attribute"] = selection.attribute
        params["attribute_value"] = selection.value
        label_key = selection.attribute
    else:
        raise TypeError(f"Unsupported source selection: {selection!r}")

    return AggregationQuery(
        statement=text(sql).bindparams(*bindparams),
        params=params,
        field_map=field_map,
        label_key=label_key,
    )


def normalize_row(mapping: Mapping[str, Any], field_map: FieldMap) -> AggregationRow:
    """Convert a raw result row into an AggregationRow.

    Field columns are matched by name through ``field_map``, so the column
    order returned by the database does not matter.

    Args:
        mapping: Column name -> value mapping of one result row.
        field_map: Ordinal mapping the statement was built with.

    Returns:
        AggregationRow: Row with values in request field order.
    """
    values: list[float | None] = [None] * len(field_map)
    extras: dict[str, Any] = {}
    for key, value in mapping.items():
        if key in (LABEL_COLUMN, TIMESTAMP_COLUMN):
            continue
        ordinal = field_map.ordinal(key)
        if ordinal is None:
            extras[key] = value
        else:
            values[ordinal] = value

    return AggregationRow(
        label=mapping[LABEL_COLUMN],
        timestamp=mapping[TIMESTAMP_COLUMN],
        values=tuple(values),
        extras=extras,
    )


async def execute_aggregation(
    session: AsyncSession,
    query: AggregationQuery,
) -> AggregationResult:
    """Run an aggregation statement and normalize its rows.

    Args:
        session: Async SQLAlchemy session for database operations.
        query: Statement built by :func:`build_aggregation_query`.

    Returns:
        AggregationResult: Rows ordered by label then bucket.

    Raises:
        ExecutionError: The database call failed for any reason.
    """
    try:
        result = await session.execute(query.statement, query.params)
        rows = result.fetchall()
    except (SQLAlchemyError, OSError) as exc:
        raise ExecutionError("Aggregation query failed") from exc

    logger.debug("Aggregation returned %d rows", len(rows))
    return AggregationResult(
        rows=[normalize_row(row._mapping, query.field_map) for row in rows],
        field_map=query.field_map,
        label_key=query.label_key,
    )


async def aggregate(session: AsyncSession, request: AggregationRequest) -> AggregationResult:
    """Build and execute the aggregation for a validated request."""
    return await execute_aggregation(session, build_aggregation_query(request))
