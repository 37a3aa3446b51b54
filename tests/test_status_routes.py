"""Tests for the application routes and OpenAPI documentation."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from throttle.core import rate_limit as rate_limit_module
from throttle.core.app_factory import create_app


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    app_settings = rate_limit_module.settings.app
    monkeypatch.setattr(app_settings, "rate_limit_enabled", True)
    monkeypatch.setattr(app_settings, "rate_limit_include_headers", True)
    monkeypatch.setattr(app_settings, "rate_limit_requests", 2)
    monkeypatch.setattr(app_settings, "rate_limit_period_ms", 60_000)
    monkeypatch.setattr(app_settings, "rate_limit_message", "Too many requests, slow down.")
    return TestClient(create_app())


def test_health_is_never_limited(client: TestClient) -> None:
    for _ in range(5):
        response = client.get("/health")
        assert response.status_code == 200
        assert "RateLimit-Limit" not in response.headers


def test_status_reports_policy_and_store(client: TestClient) -> None:
    response = client.get("/v1/status")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["limit"] == 2
    assert data["period_ms"] == 60_000
    assert data["store"]["lifespan_ms"] == 60_000
    assert data["store"]["entries"] == 1
    assert data["store"]["next_expiry_ms"] - data["store"]["current_expiry_ms"] == 60_000
    assert response.headers["RateLimit-Limit"] == "2"
    assert response.headers["RateLimit-Remaining"] == "1"


def test_status_is_throttled_after_limit(client: TestClient) -> None:
    assert client.get("/v1/status").status_code == 200
    assert client.get("/v1/status").status_code == 200

    blocked = client.get("/v1/status")

    assert blocked.status_code == 429
    assert blocked.text == "Too many requests, slow down."
    assert blocked.headers["RateLimit-Remaining"] == "0"
    assert int(blocked.headers["RateLimit-Reset"]) <= 60


def test_openapi_documents_throttling(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    status_get = schema["paths"]["/v1/status"]["get"]
    assert "429" in status_get["responses"]
    assert "Retry-After" in status_get["responses"]["429"]["headers"]
    assert "RateLimit-Remaining" in status_get["responses"]["200"]["headers"]

    health_get = schema["paths"]["/health"]["get"]
    assert "429" not in health_get["responses"]

    tag_names = {t["name"] for t in schema["tags"]}
    assert {"Status", "Health"} <= tag_names
