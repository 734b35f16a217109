from __future__ import annotations

import os
from typing import AsyncIterator, cast

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from loguru import logger
from starlette.types import ASGIApp

# Configure environment for tests before importing the app
os.environ.setdefault("ENV", "local")
os.environ.setdefault("LOG_LEVEL", "ERROR")
os.environ.setdefault("CHANNEL_CAPACITY", "16")
os.environ.setdefault("SSE_PING_SECONDS", "60")
os.environ.setdefault("CORS_ALLOWED_ORIGINS", '["http://testserver"]')
logger.remove()

from chatrelay.core.config import Settings, get_settings  # noqa: E402
from chatrelay.core.metrics import reset_metrics  # noqa: E402
from chatrelay.core.shutdown import ShutdownSignal  # noqa: E402
from chatrelay.main import create_app  # noqa: E402
from chatrelay.schemas.message import ChatMessage  # noqa: E402
from chatrelay.services.broadcast import BroadcastChannel  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_state() -> None:
    get_settings.cache_clear()
    reset_metrics()


@pytest.fixture()
def settings(tmp_path) -> Settings:
    static_dir = tmp_path / "static"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<h1>relay</h1>", encoding="utf-8")
    return Settings(STATIC_DIR=static_dir)


@pytest.fixture()
def app(settings: Settings) -> FastAPI:
    application = create_app(settings)
    logger.remove()
    return application


@pytest.fixture()
def channel(app: FastAPI) -> BroadcastChannel[ChatMessage]:
    return cast(BroadcastChannel[ChatMessage], app.state.channel)


@pytest.fixture()
def shutdown(app: FastAPI) -> ShutdownSignal:
    return cast(ShutdownSignal, app.state.shutdown)


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=cast(ASGIApp, app))  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
