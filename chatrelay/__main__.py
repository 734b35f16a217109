"""Run the relay under uvicorn."""
from __future__ import annotations

import asyncio
from types import FrameType
from typing import Any

import uvicorn
from loguru import logger

from chatrelay.core.config import get_settings
from chatrelay.core.shutdown import ShutdownSignal
from chatrelay.main import create_app


class RelayServer(uvicorn.Server):
    """uvicorn server that fires the shutdown signal as soon as exit begins.

    uvicorn waits for open connections to finish before running the lifespan
    shutdown, and event streams never finish on their own.
    """

    def __init__(self, config: uvicorn.Config, shutdown: ShutdownSignal) -> None:
        super().__init__(config)
        self._shutdown = shutdown
        self._loop: asyncio.AbstractEventLoop | None = None

    async def serve(self, sockets: Any = None) -> None:
        self._loop = asyncio.get_running_loop()
        await super().serve(sockets)

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._shutdown.trigger, f"signal {sig}")
        super().handle_exit(sig, frame)


def main() -> None:
    settings = get_settings()
    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=5,
    )
    logger.bind(host=settings.host, port=settings.port).info("relay_listening")
    RelayServer(config, app.state.shutdown).run()


if __name__ == "__main__":
    main()
