"""
Unit Tests for Health Check Endpoints

Tests the /api/health and /api/ready endpoints.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from nl2sql.api.main import app, app_state
from nl2sql.connectors.base import ConnectionError


@pytest.fixture
def client():
    """Test client without running the lifespan."""
    return TestClient(app)


@pytest.fixture
def ready_state(monkeypatch, fake_connector, mock_llm_provider):
    monkeypatch.setitem(app_state, "connector", fake_connector)
    monkeypatch.setitem(app_state, "llm_provider", mock_llm_provider)
    monkeypatch.setitem(app_state, "orchestrator", MagicMock())
    return fake_connector


class TestHealthEndpoint:
    """Test suite for health check endpoint."""

    def test_health_returns_200(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert isinstance(data["timestamp"], str)

    def test_root_describes_api(self, client):
        response = client.get("/")

        assert response.json()["docs"] == "/docs"


class TestReadinessEndpoint:
    """Test suite for readiness check endpoint."""

    def test_ready_when_all_checks_pass(self, client, ready_state):
        response = client.get("/api/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"] == {"database": True, "llm": True, "orchestrator": True}
        assert ready_state.statements == ["SELECT 1"]

    def test_not_ready_without_components(self, client, monkeypatch):
        for key in ("connector", "llm_provider", "orchestrator"):
            monkeypatch.setitem(app_state, key, None)

        response = client.get("/api/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not_ready"
        assert data["checks"] == {"database": False, "llm": False, "orchestrator": False}

    def test_database_failure(self, client, ready_state):
        ready_state.on("SELECT 1", ConnectionError("Not connected to database."))

        response = client.get("/api/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["database"] is False
