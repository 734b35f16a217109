"""Server-sent event stream of relayed messages."""
from __future__ import annotations

from fastapi import APIRouter
from sse_starlette import EventSourceResponse

from chatrelay.core.dependencies import AppSettings, MessageChannel, Shutdown
from chatrelay.services.stream import message_events

router = APIRouter()


@router.get("/events", response_class=EventSourceResponse)
async def stream_events(channel: MessageChannel, shutdown: Shutdown, settings: AppSettings) -> EventSourceResponse:
    # Subscribe before the response starts so nothing published after this
    # request was accepted can be missed.
    subscription = channel.subscribe()
    return EventSourceResponse(
        message_events(subscription, shutdown),
        ping=settings.sse_ping_seconds,
    )


__all__ = ["router"]
