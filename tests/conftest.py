"""
Shared test fixtures for sensor API tests.

Provides environment setup, mock database sessions returning SQLAlchemy-like
rows, and TestClients wired to them through dependency overrides.

CHANGELOG:
- 2026-10-12: Initial creation

TODO:
- None
"""

from collections.abc import Iterator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from sensor_api.db.session import get_async_session
from sensor_api.main import app


def make_row(mapping: dict) -> MagicMock:
    """Create a mock Row object that behaves like a SQLAlchemy Row.

    Args:
        mapping: Column name -> value mapping exposed as ``row._mapping``.

    Returns:
        MagicMock: A mock Row with _mapping access.
    """
    row = MagicMock()
    row._mapping = mapping
    return row


def make_session(rows: list) -> AsyncMock:
    """Create a mock AsyncSession whose execute() returns ``rows``.

    Args:
        rows: Rows returned by ``result.fetchall()``.

    Returns:
        AsyncMock: Mock session.
    """
    session = AsyncMock()
    result = MagicMock()
    result.fetchall.return_value = rows
    session.execute.return_value = result
    return session


# Rows as returned for fields=temperature,humidity over two sources.
# Column "0" is temperature and "1" is humidity.
SOURCE_ROWS = [
    make_row({
        "label": "src-a",
        "timestamp": datetime(2024, 1, 1, 0, 0, tzinfo=UTC),
        "0": 21.5,
        "1": 40.0,
    }),
    make_row({
        "label": "src-a",
        "timestamp": datetime(2024, 1, 1, 0, 20, tzinfo=UTC),
        "0": 22.0,
        "1": None,
    }),
    make_row({
        "label": "src-b",
        "timestamp": datetime(2024, 1, 1, 0, 0, tzinfo=UTC),
        "0": 18.25,
        "1": 55.5,
    }),
]


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure required env vars are set for every test."""
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@localhost/db")


@pytest.fixture()
def mock_db_session() -> AsyncMock:
    """Mock AsyncSession returning SOURCE_ROWS."""
    return make_session(SOURCE_ROWS)


@pytest.fixture()
def empty_db_session() -> AsyncMock:
    """Mock AsyncSession returning no rows."""
    return make_session([])


def _client_for(session: AsyncMock) -> Iterator[TestClient]:
    async def override_get_session():
        yield session

    app.dependency_overrides[get_async_session] = override_get_session

    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()


@pytest.fixture()
def client(mock_db_session: AsyncMock) -> Iterator[TestClient]:
    """TestClient with a mocked DB session returning SOURCE_ROWS."""
    yield from _client_for(mock_db_session)


@pytest.fixture()
def empty_client(empty_db_session: AsyncMock) -> Iterator[TestClient]:
    """TestClient with a mocked DB session returning no rows."""
    yield from _client_for(empty_db_session)
