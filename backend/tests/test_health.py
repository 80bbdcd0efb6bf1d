"""
Health check tests for the API.
"""

from mockexam.core.config import settings


def test_root_endpoint(client):
    """Test that the root endpoint returns 200 and correct message."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == settings.PROJECT_NAME
    assert data["version"] == "1.0.0"


def test_health(client):
    response = client.get("/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_checks_database(client):
    response = client.get("/v1/ready", headers={"X-Request-ID": "ready-probe-1"})
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["checks"]["db"] == {"status": "ok", "message": None}
    assert data["checks"]["catalog"]["status"] == "ok"
    assert data["request_id"] == "ready-probe-1"
    assert response.headers["X-Request-ID"] == "ready-probe-1"


def test_errors_use_envelope(client):
    response = client.get("/v1/dashboard/stats", headers={"Authorization": "Token abc"})
    assert response.status_code == 401
    body = response.json()
    assert body["error_code"] == "UNAUTHORIZED"
    assert set(body) == {"error_code", "message", "details", "request_id"}


def test_unknown_route_uses_envelope(client):
    response = client.get("/v1/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"


def test_unsafe_request_id_is_replaced(client):
    response = client.get("/v1/health", headers={"X-Request-ID": "bad id with spaces"})
    assert response.status_code == 200
    assert response.headers["X-Request-ID"] != "bad id with spaces"
    assert len(response.headers["X-Request-ID"]) == 36
