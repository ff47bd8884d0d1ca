"""
Tests for the Source and Rollup5Min SQLAlchemy models.

Validates table names, column types and primary keys the aggregation
statements rely on.

CHANGELOG:
- 2026-10-12: Initial creation

TODO:
- None
"""

from sqlalchemy import CHAR, DateTime, inspect
from sqlalchemy.dialects.postgresql import JSONB

from sensor_api.db.models import SOURCE_ID_LENGTH, Rollup5Min, Source


class TestSourceModel:
    """Tests for the sources table mapping."""

    def test_table_name(self) -> None:
        assert Source.__tablename__ == "sources"

    def test_columns(self) -> None:
        column_names = [col.key for col in inspect(Source).column_attrs]
        assert column_names == ["id", "data", "email"]

    def test_id_is_fixed_width_primary_key(self) -> None:
        col = Source.__table__.columns["id"]
        assert isinstance(col.type, CHAR)
        assert col.type.length == SOURCE_ID_LENGTH
        assert col.primary_key

    def test_data_is_jsonb(self) -> None:
        assert isinstance(Source.__table__.columns["data"].type, JSONB)


class TestRollup5MinModel:
    """Tests for the rollup_5min table mapping."""

    def test_table_name(self) -> None:
        assert Rollup5Min.__tablename__ == "rollup_5min"

    def test_composite_primary_key(self) -> None:
        pk_cols = [col.name for col in Rollup5Min.__table__.primary_key.columns]
        assert pk_cols == ["source", "ts"]

    def test_ts_is_timestamptz(self) -> None:
        col = Rollup5Min.__table__.columns["ts"]
        assert isinstance(col.type, DateTime)
        assert col.type.timezone is True

    def test_source_references_sources(self) -> None:
        col = Rollup5Min.__table__.columns["source"]
        targets = [fk.target_fullname for fk in col.foreign_keys]
        assert targets == ["sources.id"]

    def test_data_is_not_nullable_jsonb(self) -> None:
        col = Rollup5Min.__table__.columns["data"]
        assert isinstance(col.type, JSONB)
        assert col.nullable is False

    def test_repr(self) -> None:
        rollup = Rollup5Min(source="abc", ts=None, data={})
        assert "abc" in repr(rollup)
