"""Tests for health check endpoints."""

from fastapi.testclient import TestClient


def test_health_check(app_client: TestClient) -> None:
    """Test health endpoint returns healthy status."""
    response = app_client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "productbuilder-api"
    assert "version" in data


def test_readiness_check(app_client: TestClient) -> None:
    """Test readiness endpoint reports the memory backend as ready."""
    response = app_client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["cache_backend"] == "memory"
