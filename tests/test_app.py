from fastapi.testclient import TestClient

from main import create_app
from services.container import build_container
from utils.repository import InMemoryRepository


def test_cors_origins_come_from_environment(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://app.example.com")
    client = TestClient(create_app())

    allowed = client.get("/health", headers={"Origin": "https://app.example.com"})
    blocked = client.get("/health", headers={"Origin": "https://evil.example.com"})

    assert allowed.headers["access-control-allow-origin"] == "https://app.example.com"
    assert "access-control-allow-origin" not in blocked.headers


def test_cors_origins_from_container_settings(settings):
    container = build_container(settings, InMemoryRepository())
    client = TestClient(create_app(container=container))

    response = client.get("/health", headers={"Origin": "https://anywhere.example.com"})

    assert response.headers["access-control-allow-origin"] in ("*", "https://anywhere.example.com")
