"""
Tests for health check endpoints.
"""
from fastapi.testclient import TestClient

from pantry_pos.core.config import get_settings
from pantry_pos.core.exceptions import StorageError
from pantry_pos.main import app


class TestHealth:
    """Tests for health check endpoints."""

    def test_basic_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_api_health_checks_database(self, client: TestClient):
        """The API health check reports on the database behind the store."""
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["services"]["database"]["status"] == "ok"

    def test_api_health_reports_store_contents(self, client: TestClient):
        store = client.get("/api/health").json()["services"]["store"]

        assert store["status"] == "ok"
        assert store["products"] == 5
        assert store["ingredients"] == 4
        assert store["sales"] == 0

    def test_api_health_unreadable_store(self, client: TestClient, register, monkeypatch):
        """A store that cannot be read makes the service unhealthy."""
        def broken_read(key):
            raise StorageError("Storage is unavailable")

        monkeypatch.setattr(register.persistence.store, "get_item", broken_read)
        response = client.get("/api/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["store"]["message"] == "Storage is unavailable"
        assert data["services"]["database"]["status"] == "ok"

    def test_root(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_debug_follows_settings(self):
        """DEBUG is off unless the environment turns it on."""
        assert get_settings().DEBUG is False
        assert app.debug is False
