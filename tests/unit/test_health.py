from pathlib import Path

import pytest
from conftest import FakeMessageClient, FakeRenderer, text_response
from fastapi.testclient import TestClient

from llm_diagrams.config import get_settings
from llm_diagrams.main import create_app


def test_healthz_ok() -> None:
    client = TestClient(create_app(renderer=FakeRenderer()))
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_readyz_returns_503_without_credential() -> None:
    client = TestClient(create_app(renderer=FakeRenderer()))
    response = client.get("/readyz")
    assert response.status_code == 503
    data = response.json()
    assert data["ok"] is False
    assert data["checks"]["credential"] is False
    assert data["checks"]["work_dir"] is True


def test_readyz_ok_when_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    get_settings.cache_clear()
    app = create_app(client=FakeMessageClient(text_response("")), renderer=FakeRenderer())
    response = TestClient(app).get("/readyz")
    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "checks": {"credential": True, "renderer": True, "work_dir": True},
    }


def test_readyz_reports_missing_renderer_binary(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("RENDER_COMMAND", str(tmp_path / "missing-plantuml"))
    get_settings.cache_clear()
    app = create_app(client=FakeMessageClient(text_response("")))
    response = TestClient(app).get("/readyz")
    assert response.status_code == 503
    assert response.json()["checks"]["renderer"] is False
