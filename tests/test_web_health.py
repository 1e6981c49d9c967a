"""Tests for health endpoint."""


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_returns_ok(self, client):
        """Health endpoint answers without a bearer token."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"

    def test_health_returns_version(self, client):
        response = client.get("/health")
        assert response.json()["version"] == "0.1.0"

    def test_health_returns_timestamp(self, client):
        response = client.get("/health")
        data = response.json()
        # ISO format check
        assert "T" in data["timestamp"]

    def test_health_sets_no_cookie(self, client):
        response = client.get("/health")
        assert "set-cookie" not in response.headers
