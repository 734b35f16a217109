"""Application configuration management."""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from chatrelay.services.broadcast import DEFAULT_CAPACITY

_DEFAULT_ORIGINS = ["http://localhost", "http://localhost:8000"]
_PACKAGE_STATIC_DIR = Path(__file__).resolve().parents[1] / "static"


class Settings(BaseSettings):
    """Typed application settings loaded from the environment."""

    env: Literal["local", "dev", "prod"] = Field(default="local", validation_alias="ENV")
    host: str = Field(default="127.0.0.1", validation_alias="HOST")
    port: int = Field(default=8000, ge=1, le=65535, validation_alias="PORT")
    channel_capacity: int = Field(default=DEFAULT_CAPACITY, ge=1, validation_alias="CHANNEL_CAPACITY")
    static_dir: Path = Field(default=_PACKAGE_STATIC_DIR, validation_alias="STATIC_DIR")
    sse_ping_seconds: int = Field(default=15, ge=1, validation_alias="SSE_PING_SECONDS")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(_DEFAULT_ORIGINS),
        validation_alias="CORS_ALLOWED_ORIGINS",
    )
    git_sha: str | None = Field(default=None, validation_alias="GIT_SHA")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_cors(cls, value: object) -> list[str]:
        if isinstance(value, str):
            if value.lstrip().startswith("["):
                return json.loads(value)
            origins = [item.strip() for item in value.split(",") if item.strip()]
            return origins or list(_DEFAULT_ORIGINS)
        return value  # type: ignore[return-value]

    @property
    def is_local(self) -> bool:
        return self.env == "local"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]
