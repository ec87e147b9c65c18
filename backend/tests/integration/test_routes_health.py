"""
Integration tests for the health check endpoint.

Verifies GET /health returns 200 with status "healthy".
"""
import pytest


@pytest.mark.integration
class TestHealthRoutes:
    """Integration tests for the /health endpoint."""

    def test_health_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_returns_status_healthy(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["service"]

    def test_health_response_is_json(self, client):
        response = client.get("/health")
        assert response.headers["content-type"] == "application/json"

    def test_health_wrong_method_not_allowed(self, client):
        response = client.post("/health")
        assert response.status_code == 405

    def test_unknown_route_is_404(self, client):
        assert client.get("/api/v1/nope").status_code == 404
