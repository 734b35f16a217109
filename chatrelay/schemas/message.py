"""Chat message schema."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

ROOM_MAX_LENGTH = 30
USERNAME_MAX_LENGTH = 20


class ChatMessage(BaseModel):
    """A single chat line relayed to every connected client.

    Length limits are enforced when the message is decoded from a request;
    the broadcast channel relays whatever it is handed.
    """

    room: str = Field(max_length=ROOM_MAX_LENGTH)
    username: str = Field(max_length=USERNAME_MAX_LENGTH)
    message: str

    model_config = ConfigDict(frozen=True)


__all__ = ["ChatMessage", "ROOM_MAX_LENGTH", "USERNAME_MAX_LENGTH"]
