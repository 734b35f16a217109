"""HTTP API package."""
from fastapi import APIRouter

from chatrelay.api import events, messages

api_router = APIRouter()
api_router.include_router(messages.router, tags=["messages"])
api_router.include_router(events.router, tags=["events"])

__all__ = ["api_router"]
