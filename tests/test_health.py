"""
Basic health endpoint tests.
"""

from fastapi.testclient import TestClient

from salonbook.main import app


def test_health_endpoint():
    client = TestClient(app)
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert "X-Request-ID" in response.headers


def test_ready_endpoint():
    client = TestClient(app)
    response = client.get("/readyz")

    assert response.status_code == 200
    assert response.json() == {"db": "ok"}


def test_metrics_endpoint():
    client = TestClient(app)
    response = client.get("/metrics")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "total_unique_errors" in data["errors"]


def test_api_key_protection():
    client = TestClient(app)
    response = client.get("/services")
    assert response.status_code == 401


def test_request_id_is_echoed():
    client = TestClient(app)
    response = client.get("/healthz", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


def test_app_routes():
    paths = app.openapi()["paths"]
    for path in ("/availability", "/appointments", "/appointments/stats", "/appointments/{appointment_id}",
                 "/users/{user_id}/appointments", "/services/{service_id}/active"):
        assert path in paths
    # Health checks stay out of the public schema
    assert "/healthz" not in paths
