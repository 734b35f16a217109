"""Structured logging utilities."""
from __future__ import annotations

import sys
import time
import uuid
from collections.abc import MutableMapping
from typing import Any, cast

from fastapi import Request
from loguru import logger
from starlette.types import ASGIApp, Receive, Scope, Send

from chatrelay.core import metrics


def configure_logging(level: str = "INFO") -> None:
    """Configure loguru to emit JSON-formatted, single-line logs."""

    logger.remove()
    logger.add(
        sys.stdout,
        level=level.upper(),
        serialize=True,
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )


def _client_host(scope: Scope) -> str | None:
    client = scope.get("client")
    if client and isinstance(client, tuple):
        return cast(str, client[0])
    return None


class RequestLoggingMiddleware:
    """ASGI middleware that records structured request metrics.

    Streaming responses are logged when their headers go out, so an event
    stream shows up as completed as soon as it is opened.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope_state = scope.setdefault("state", {})
        request_id = str(uuid.uuid4())
        scope_state["request_id"] = request_id
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        client_host = _client_host(scope)
        start = time.perf_counter()
        log = logger.bind(request_id=request_id, path=path, method=method)
        if client_host:
            scope_state["ip"] = client_host
            log = log.bind(ip=client_host)

        responded = False

        async def send_wrapper(message: MutableMapping[str, Any]) -> None:
            nonlocal responded
            if message["type"] == "http.response.start" and not responded:
                responded = True
                status_code = int(message.get("status", 500))
                elapsed_seconds = time.perf_counter() - start
                route = scope.get("route")
                path_template = str(getattr(route, "path", path)) if route is not None else path
                metrics.observe_request(path_template, method, status_code, elapsed_seconds)
                log_context: dict[str, Any] = {
                    "status_code": status_code,
                    "latency_ms": round(elapsed_seconds * 1000, 2),
                }
                if status_code >= 500:
                    error_detail = scope_state.get("error_detail")
                    if error_detail:
                        log_context["error"] = error_detail
                log.bind(**log_context).info("request_completed")
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            elapsed_seconds = time.perf_counter() - start
            scope_state["error_detail"] = exc.__class__.__name__
            log.bind(
                latency_ms=round(elapsed_seconds * 1000, 2),
                error=exc.__class__.__name__,
            ).exception("request_failed")
            raise


def record_validation_error(request: Request, error: str, details: Any | None = None) -> None:
    """Log a rejected request body."""

    context: dict[str, Any] = {
        "path": request.url.path,
        "method": request.method,
        "details": details,
    }
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        context["request_id"] = request_id
    logger.bind(**context).warning(error)


__all__ = ["RequestLoggingMiddleware", "configure_logging", "record_validation_error"]
