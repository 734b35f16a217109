"""Publish endpoint."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Form, Response, status
from loguru import logger

from chatrelay.core.dependencies import MessageChannel
from chatrelay.core.metrics import record_message_published
from chatrelay.schemas.message import ChatMessage

router = APIRouter()


@router.post("/message", status_code=status.HTTP_200_OK, response_class=Response)
async def post_message(message: Annotated[ChatMessage, Form()], channel: MessageChannel) -> Response:
    """Relay a chat message to every open event stream.

    Nobody listening is fine; the message is simply dropped from the buffer
    once it ages out.
    """

    receivers = channel.publish(message)
    record_message_published()
    logger.bind(room=message.room, receivers=receivers).debug("message_published")
    return Response(status_code=status.HTTP_200_OK)


__all__ = ["router"]
