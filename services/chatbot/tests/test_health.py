"""
CFC Push Chatbot - Health Endpoint Tests
"""

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.config import settings


@pytest.fixture
def bare_client():
    """Test client without any services installed."""
    return TestClient(app)


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_returns_200(self, bare_client):
        """Health endpoint should return 200 OK."""
        response = bare_client.get("/health")
        assert response.status_code == 200

    def test_health_includes_service_info(self, bare_client):
        """Health endpoint should include service name and version."""
        data = bare_client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["service"] == settings.APP_NAME
        assert data["version"] == settings.APP_VERSION


class TestRootEndpoint:
    """Tests for the root endpoint."""

    def test_root_includes_service_info(self, bare_client):
        """Root endpoint should include service information."""
        data = bare_client.get("/").json()
        assert data["service"] == settings.APP_NAME
        assert "webhook" in data


class TestChatbotHealth:
    """Tests for the dependency-aware health endpoint."""

    def test_healthy_when_cache_loaded(self, client):
        """Loaded menu cache means the bot can answer."""
        data = client.get("/api/chatbot/health").json()
        assert data["status"] == "healthy"
        assert data["checks"]["menu_cache"] is True
        assert data["checks"]["twilio"] is True

    def test_degraded_when_cache_empty(self, client, container):
        """An empty cache is reported as degraded."""
        container.cache._nodes = []
        data = client.get("/api/chatbot/health").json()
        assert data["status"] == "degraded"

    def test_status_reports_conversations(self, client):
        """Status endpoint counts conversations created through the engine."""
        client.post("/api/chatbot/test/message", json={"phoneNumber": "+5511999", "message": "oi"})
        data = client.get("/api/chatbot/status").json()
        assert data["active_conversations"] == 1
        assert data["cache"]["root_menus"] == 3


class TestSecurityConfig:
    """Tests for startup configuration warnings."""

    def test_warns_when_twilio_missing(self, monkeypatch):
        from app.security import validate_security_config

        monkeypatch.setattr("app.security.settings.TWILIO_ACCOUNT_SID", None)
        with pytest.warns(UserWarning, match="Twilio is not configured"):
            validate_security_config()

    def test_warns_on_invalid_refresh_hour(self, monkeypatch):
        from app.security import validate_security_config

        monkeypatch.setattr("app.security.settings.CACHE_REFRESH_HOUR", 24)
        with pytest.warns(UserWarning, match="CACHE_REFRESH_HOUR"):
            validate_security_config()
