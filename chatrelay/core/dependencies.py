"""Common FastAPI dependencies."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from chatrelay.core.config import Settings
from chatrelay.core.shutdown import ShutdownSignal
from chatrelay.schemas.message import ChatMessage
from chatrelay.services.broadcast import BroadcastChannel


def get_channel(request: Request) -> BroadcastChannel[ChatMessage]:
    """Return the broadcast channel owned by the running application."""

    return request.app.state.channel


def get_shutdown_signal(request: Request) -> ShutdownSignal:
    return request.app.state.shutdown


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


MessageChannel = Annotated[BroadcastChannel[ChatMessage], Depends(get_channel)]
Shutdown = Annotated[ShutdownSignal, Depends(get_shutdown_signal)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]

__all__ = [
    "AppSettings",
    "MessageChannel",
    "Shutdown",
    "get_app_settings",
    "get_channel",
    "get_shutdown_signal",
]
