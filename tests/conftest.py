from __future__ import annotations

import pytest

from app.core.settings import Settings, get_settings

_SETTINGS_ENV_VARS = (
    "PORT",
    "HOST",
    "APP_ENV",
    "APP_NAME",
    "APP_VERSION",
    "JSON_BODY_LIMIT_MB",
    "URLENCODED_BODY_LIMIT_KB",
    "CORS_ALLOW_ORIGINS",
    "METRICS_ENABLED",
    "DEMO_USERNAME",
    "DEMO_PASSWORD",
    "AUTH_TOKEN_TTL_SECONDS",
    "PREBOOK_TTL_SECONDS",
)


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Settings are cached via @lru_cache; clear so each test sees its own environment.
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def client(settings: Settings):
    from fastapi.testclient import TestClient

    from app.factory import create_app

    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client) -> dict[str, str]:
    res = client.post("/api/auth/login", json={"username": "demo", "password": "demo123"})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}
