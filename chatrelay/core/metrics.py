"""Prometheus metrics collectors and helpers."""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

REGISTRY: CollectorRegistry
HTTP_REQUESTS_TOTAL: Counter
HTTP_REQUEST_DURATION: Histogram
MESSAGES_PUBLISHED_TOTAL: Counter
SUBSCRIBER_LAG_TOTAL: Counter
EVENT_STREAMS_ACTIVE: Gauge


def _initialise_registry() -> None:
    global REGISTRY, HTTP_REQUESTS_TOTAL, HTTP_REQUEST_DURATION
    global MESSAGES_PUBLISHED_TOTAL, SUBSCRIBER_LAG_TOTAL, EVENT_STREAMS_ACTIVE

    registry = CollectorRegistry(auto_describe=True)
    ProcessCollector(registry=registry)  # expose process CPU/memory stats
    PlatformCollector(registry=registry)  # platform/runtime metadata

    HTTP_REQUESTS_TOTAL = Counter(
        "http_requests_total",
        "Count of HTTP requests received",
        labelnames=("path", "method", "status"),
        registry=registry,
    )

    HTTP_REQUEST_DURATION = Histogram(
        "http_request_duration_seconds",
        "Histogram of request latency",
        labelnames=("path", "method"),
        registry=registry,
    )

    MESSAGES_PUBLISHED_TOTAL = Counter(
        "messages_published_total",
        "Chat messages accepted onto the broadcast channel",
        registry=registry,
    )

    SUBSCRIBER_LAG_TOTAL = Counter(
        "subscriber_lag_total",
        "Messages skipped by subscribers that fell behind the buffer",
        registry=registry,
    )

    EVENT_STREAMS_ACTIVE = Gauge(
        "event_streams_active",
        "Open server-sent event streams",
        registry=registry,
    )

    REGISTRY = registry


_initialise_registry()


def render_metrics() -> bytes:
    """Return the current metrics snapshot in Prometheus format."""

    return generate_latest(REGISTRY)


def observe_request(path: str, method: str, status: int, latency_seconds: float) -> None:
    """Record HTTP request metrics in a thread-safe manner."""

    HTTP_REQUESTS_TOTAL.labels(path=path, method=method, status=str(status)).inc()
    HTTP_REQUEST_DURATION.labels(path=path, method=method).observe(latency_seconds)


def record_message_published() -> None:
    MESSAGES_PUBLISHED_TOTAL.inc()


def record_subscriber_lag(skipped: int) -> None:
    """Count messages a lagging subscriber will never see."""

    SUBSCRIBER_LAG_TOTAL.inc(skipped)


def adjust_event_streams(delta: int) -> None:
    """Increment or decrement the open stream gauge by delta."""

    EVENT_STREAMS_ACTIVE.inc(delta) if delta >= 0 else EVENT_STREAMS_ACTIVE.dec(abs(delta))


def reset_metrics() -> None:
    """Reset collectors; intended for deterministic tests."""

    _initialise_registry()


__all__ = [
    "CONTENT_TYPE_LATEST",
    "REGISTRY",
    "render_metrics",
    "observe_request",
    "record_message_published",
    "record_subscriber_lag",
    "adjust_event_streams",
    "reset_metrics",
]
