"""
SQLAlchemy ORM models for the sensor telemetry database.

The schema is owned by the ingestion side of the system; these models only
describe the columns the read API depends on:

- ``sources``: the source registry, one row per registered telemetry
  producer, with free-form JSON metadata (for example ``city``).
- ``rollup_5min``: 5-minute rollups of raw entries, one JSON document of
  per-field partial aggregates per source and bucket.

CHANGELOG:
- 2026-10-19: Document the sources key column used by the aggregation join
- 2026-10-12: Initial creation

TODO:
- None
"""

import datetime
from typing import Any

from sqlalchemy import CHAR, DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

SOURCE_ID_LENGTH = 25


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all sensor API ORM models."""

    pass


class Source(Base):
    """A registered telemetry producer.

    Sources are keyed by ``id``: the same value is stored in
    ``rollup_5min.source`` and returned by the source lookup endpoint. The
    aggregation join (``rollup_5min.source = sources.id``) follows the
    foreign key declared on :class:`Rollup5Min`; a deployment whose
    registry names the key column differently must change this mapping.

    Attributes:
        id: Stable source identifier.
        data: Source metadata (``city``, ``name``, ...).
        email: Contact address of the source owner. Never exposed by the API.
    """

    __tablename__ = "sources"

    id: Mapped[str] = mapped_column(CHAR(SOURCE_ID_LENGTH), primary_key=True)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        """Return string representation of the Source."""
        return f"Source(id={self.id!r})"


class Rollup5Min(Base):
    """Pre-aggregated entries for one source over a 5-minute bucket.

    ``data`` holds the rollup state consumed by the ``rollup_agg`` and
    ``rollup_pick`` database functions.

    Attributes:
        source: Identifier of the source that produced the entries.
            References ``sources.id``.
        ts: Start of the 5-minute bucket in UTC.
        data: Rollup state keyed by field name.
    """

    __tablename__ = "rollup_5min"

    source: Mapped[str] = mapped_column(
        CHAR(SOURCE_ID_LENGTH), ForeignKey("sources.id"), primary_key=True,
    )
    ts: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), primary_key=True,
    )
    data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    def __repr__(self) -> str:
        """Return string representation of the Rollup5Min."""
        return f"Rollup5Min(source={self.source!r}, ts={self.ts!r})"
