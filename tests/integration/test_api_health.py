"""Integration tests for health endpoints."""

from fastapi.testclient import TestClient


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_returns_ok(self, api_client: TestClient):
        """Basic health check should return OK."""
        response = api_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data

    def test_ready_checks_database_and_clock(self, api_client: TestClient):
        """Readiness check should report each dependency."""
        response = api_client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"]["status"] == "ok"
        assert data["checks"]["clock"]["status"] == "ok"
        assert data["checks"]["email"]["status"] == "not_configured"
        assert "version" in data

    def test_info_returns_service_info(self, api_client: TestClient):
        """Info endpoint should return service metadata."""
        response = api_client.get("/health/info")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "kitchenCOGS API"
        assert data["timezone"] == "Africa/Lagos"

    def test_request_id_is_echoed(self, api_client: TestClient):
        response = api_client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
        assert "X-Response-Time-Ms" in response.headers
