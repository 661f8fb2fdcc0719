"""Tests for health check endpoints."""

from fastapi.testclient import TestClient

from edit_orchestrator import __version__
from edit_orchestrator.api import create_app
from edit_orchestrator.models import AppConfig, OrchestratorConfig

client = TestClient(
    create_app(AppConfig(orchestrator=OrchestratorConfig(model="test-model")))
)


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self):
        """Health check should return 200 OK."""
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_returns_healthy_status(self):
        response = client.get("/health")
        data = response.json()
        assert data["status"] == "healthy"

    def test_health_includes_version(self):
        """Health check should include version."""
        data = client.get("/health").json()
        assert data["version"] == __version__

    def test_health_includes_model(self):
        """Health check reports the configured completion model."""
        data = client.get("/health").json()
        assert data["model"] == "test-model"
