from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _llm_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "gemini")
    monkeypatch.setenv("GOOGLE_AI_API_KEY", "test-google-key")
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("STRICT_CRITERIA_VALIDATION", raising=False)
    monkeypatch.delenv("CORS_ALLOW_ORIGINS", raising=False)
    # Settings are cached via @lru_cache; clear so each test sees its own environment.
    from speechcoach.core.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from speechcoach.main import create_app

    app = create_app()
    with TestClient(app) as c:
        yield c
