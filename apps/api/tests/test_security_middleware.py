from __future__ import annotations

from fastapi.testclient import TestClient


def test_request_id_header_present() -> None:
    from main import create_app

    client = TestClient(create_app())
    r = client.get("/health")
    assert r.status_code == 200
    assert r.headers.get("x-request-id")

    r2 = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r2.headers["x-request-id"] == "abc-123"


def test_bearer_auth_blocks_when_enabled(monkeypatch) -> None:
    monkeypatch.setenv("API_AUTH_MODE", "bearer")
    monkeypatch.setenv("API_AUTH_TOKEN", "secret")

    from main import create_app

    client = TestClient(create_app())

    # Health is exempt so supervisors can probe it.
    r0 = client.get("/health")
    assert r0.status_code == 200

    r1 = client.get("/sync/status")
    assert r1.status_code == 401

    r2 = client.get("/sync/status", headers={"Authorization": "Bearer secret"})
    assert r2.status_code == 200


def test_bearer_mode_without_token_rejects_everything(monkeypatch) -> None:
    monkeypatch.setenv("API_AUTH_MODE", "bearer")

    from main import create_app

    client = TestClient(create_app())
    assert client.get("/sync/config", headers={"Authorization": "Bearer "}).status_code == 401
