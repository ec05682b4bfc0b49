"""
Tests for the main application endpoints and error handling.
"""
from fastapi.testclient import TestClient

from hospital_api.core.middleware import RateLimitMiddleware
from hospital_api.main import create_app


def test_health_check(client):
    """
    Test the health check endpoint returns a healthy status.
    """
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert data["environment"] == "development"


def test_version_endpoint(client):
    response = client.get("/api/version")
    assert response.status_code == 200
    assert response.json()["api_prefix"] == "/api/v1"


def test_request_id_header(client):
    response = client.get("/health")
    assert response.headers["X-Request-ID"]
    assert "X-Process-Time" in response.headers


def test_unexpected_error_is_internal(app):
    @app.get("/boom")
    def boom():
        raise RuntimeError("database exploded")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")
    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "INTERNAL"
    assert body["detail"] == "Internal server error"
    assert "database exploded" not in response.text


def test_debug_mode_includes_stack(settings, engine):
    app = create_app(settings.model_copy(update={"debug": True}), engine=engine)

    @app.get("/boom")
    def boom():
        raise RuntimeError("database exploded")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")
    assert response.status_code == 500
    assert "database exploded" in "".join(response.json()["details"]["stack"])


def test_rate_limit(settings, engine):
    limited = settings.model_copy(update={"rate_limit_enabled": True, "rate_limit_requests": 2})
    app = create_app(limited, engine=engine)

    with TestClient(app) as client:
        for _ in range(2):
            assert client.post("/api/v1/auth/login", json={}).status_code == 400
        response = client.post("/api/v1/auth/login", json={})
        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMITED"

        # Non-API routes are not limited
        assert client.get("/health").status_code == 200


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/v1/nope")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "NOT_FOUND"
    assert "/api/v1/nope" in body["detail"]
    assert "timestamp" in body


def test_wrong_method_uses_error_envelope(client):
    response = client.delete("/api/v1/auth/login")
    assert response.status_code == 405
    assert response.json()["code"] == "METHOD_NOT_ALLOWED"
    assert "POST" in response.headers["Allow"]


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert response.headers["Referrer-Policy"] == "no-referrer"
    assert "Strict-Transport-Security" not in response.headers


def test_hsts_in_production(settings, engine):
    app = create_app(settings.model_copy(update={"environment": "production"}), engine=engine)
    with TestClient(app) as client:
        response = client.get("/health")
    assert response.headers["Strict-Transport-Security"].startswith("max-age=")


def test_rate_limiter_forgets_idle_clients():
    limiter = RateLimitMiddleware(app=None, rate_limit=5, window_seconds=60)
    limiter.requests["10.0.0.1"].append(1000.0)
    limiter.requests["10.0.0.2"].append(1050.0)
    limiter.requests["10.0.0.3"].clear()

    limiter._evict_idle_clients(1070.0)

    assert set(limiter.requests) == {"10.0.0.2"}


def test_rate_limiter_sweeps_once_per_window():
    limiter = RateLimitMiddleware(app=None, rate_limit=5, window_seconds=60)
    limiter._evict_idle_clients(1000.0)
    limiter.requests["10.0.0.1"].append(900.0)

    limiter._evict_idle_clients(1030.0)
    assert "10.0.0.1" in limiter.requests

    limiter._evict_idle_clients(1060.0)
    assert "10.0.0.1" not in limiter.requests
