"""Process-wide shutdown notification."""
from __future__ import annotations

import asyncio

from loguru import logger


class ShutdownSignal:
    """One-shot signal observed by long-lived streams.

    It is fired once when the server starts exiting; every waiter is released
    at the same time. Later triggers are ignored.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def reason(self) -> str | None:
        return self._reason

    def is_set(self) -> bool:
        return self._event.is_set()

    def trigger(self, reason: str = "shutdown") -> bool:
        """Fire the signal. Returns ``False`` if it had already fired."""

        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        logger.bind(reason=reason).info("shutdown_requested")
        return True

    async def wait(self) -> None:
        await self._event.wait()


__all__ = ["ShutdownSignal"]
