"""
Tests for the ping and health endpoints.

CHANGELOG:
- 2026-10-12: Initial creation

TODO:
- None
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from sensor_api.main import app


def test_ping_returns_200():
    """GET / returns 200 status code."""
    client = TestClient(app)
    response = client.get("/")
    assert response.status_code == 200


def test_ping_returns_json_with_status():
    """GET / returns JSON body with 'status' key."""
    client = TestClient(app)
    data = client.get("/").json()
    assert data["status"] == "ok"


class TestHealthEndpointOk:
    """GET /health returns 200 with status=ok when the DB is healthy."""

    @patch("sensor_api.api.health._check_db", new_callable=AsyncMock, return_value="ok")
    def test_returns_200(self, mock_db):
        client = TestClient(app)
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "db": "ok"}


class TestHealthEndpointDbDown:
    """GET /health returns 503 with status=degraded when the DB is down."""

    @patch("sensor_api.api.health._check_db", new_callable=AsyncMock, return_value="error")
    def test_returns_503(self, mock_db):
        client = TestClient(app)
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json() == {"status": "degraded", "db": "error"}


class TestHealthDbProbe:
    """Unit tests for the _check_db helper function."""

    @pytest.mark.asyncio()
    async def test_db_ok(self):
        """_check_db returns 'ok' when SELECT 1 succeeds."""
        mock_session = AsyncMock()

        async def fake_sessions():
            yield mock_session

        with patch("sensor_api.api.health.get_async_session", fake_sessions):
            from sensor_api.api.health import _check_db

            assert await _check_db() == "ok"
        mock_session.execute.assert_awaited_once()

    @pytest.mark.asyncio()
    async def test_db_error(self):
        """_check_db returns 'error' when the query raises."""
        mock_session = AsyncMock()
        mock_session.execute.side_effect = ConnectionRefusedError("refused")

        async def fake_sessions():
            yield mock_session

        with patch("sensor_api.api.health.get_async_session", fake_sessions):
            from sensor_api.api.health import _check_db

            assert await _check_db() == "error"
