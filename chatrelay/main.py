"""FastAPI application entrypoint."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from loguru import logger

from chatrelay import __version__
from chatrelay.api import api_router
from chatrelay.core.config import Settings, get_settings
from chatrelay.core.dependencies import AppSettings, MessageChannel, Shutdown
from chatrelay.core.health import build_health_payload
from chatrelay.core.logging import RequestLoggingMiddleware, configure_logging, record_validation_error
from chatrelay.core.metrics import CONTENT_TYPE_LATEST, render_metrics
from chatrelay.core.shutdown import ShutdownSignal
from chatrelay.schemas.message import ChatMessage
from chatrelay.services.broadcast import BroadcastChannel, ChannelClosed


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        detail = exc.detail
        if isinstance(detail, dict) and "error" in detail:
            content = detail
        else:
            content = {"error": {"code": "http_error", "message": str(detail)}}
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            request.state.error_detail = str(detail)
        headers = exc.headers if exc.headers else None
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [{key: value for key, value in error.items() if key != "ctx"} for error in exc.errors()]
        record_validation_error(request, "validation_error", errors)
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "code": "validation_error",
                    "message": "Request validation failed.",
                    "details": errors,
                }
            },
        )

    @app.exception_handler(ChannelClosed)
    async def channel_closed_handler(request: Request, exc: ChannelClosed) -> JSONResponse:
        logger.bind(path=request.url.path).warning("channel_closed_request")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": {"code": "channel_closed", "message": "Relay is shutting down."}},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request.state.error_detail = exc.__class__.__name__
        logger.exception("Unhandled application error")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"code": "server_error", "message": "Internal server error."}},
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the relay application together with its channel and shutdown signal."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    channel: BroadcastChannel[ChatMessage] = BroadcastChannel(capacity=settings.channel_capacity)
    shutdown = ShutdownSignal()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.bind(capacity=channel.capacity, env=settings.env).info("relay_started")
        try:
            yield
        finally:
            shutdown.trigger("lifespan shutdown")
            channel.close()

    app = FastAPI(title="Chat Relay", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.channel = channel
    app.state.shutdown = shutdown

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app)

    app.include_router(api_router)

    @app.get("/world", tags=["status"], response_class=PlainTextResponse)
    async def world() -> str:
        return "Hello World!"

    @app.get("/health", tags=["health"], response_model=dict)
    async def health(
        channel: MessageChannel, shutdown: Shutdown, settings: AppSettings
    ) -> dict[str, Any]:
        """Return channel and process telemetry."""

        return build_health_payload(channel, shutdown, settings.git_sha)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose Prometheus-formatted metrics."""

        return Response(content=render_metrics(), media_type=CONTENT_TYPE_LATEST)

    # Mounted last so API routes take precedence at the root.
    app.mount(
        "/",
        StaticFiles(directory=settings.static_dir, html=True, check_dir=False),
        name="static",
    )
    return app


__all__ = ["create_app"]
