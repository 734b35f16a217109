from __future__ import annotations

import pytest
from pydantic import ValidationError

from chatrelay.core.config import Settings, get_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CHANNEL_CAPACITY", "SSE_PING_SECONDS", "CORS_ALLOWED_ORIGINS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.channel_capacity == 1024
    assert settings.sse_ping_seconds == 15
    assert settings.cors_origins == ["http://localhost", "http://localhost:8000"]
    assert settings.static_dir.name == "static"
    assert settings.is_local


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHANNEL_CAPACITY", "32")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("ENV", "prod")
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://a.example, https://b.example")

    settings = get_settings()

    assert settings.channel_capacity == 32
    assert settings.port == 9000
    assert not settings.is_local
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert get_settings() is settings


def test_cors_origins_accept_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", '["https://chat.example"]')
    assert Settings(_env_file=None).cors_origins == ["https://chat.example"]


def test_capacity_must_be_positive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHANNEL_CAPACITY", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
