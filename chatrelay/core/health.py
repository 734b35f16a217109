"""Health check helpers."""
from __future__ import annotations

import datetime as dt
from typing import Any

from chatrelay.core.shutdown import ShutdownSignal
from chatrelay.services.broadcast import BroadcastChannel

_PROCESS_STARTED_AT = dt.datetime.now(dt.timezone.utc)


def get_uptime_seconds() -> float:
    """Return the service uptime in seconds."""

    now = dt.datetime.now(dt.timezone.utc)
    return round(max((now - _PROCESS_STARTED_AT).total_seconds(), 0.0), 2)


def channel_snapshot(channel: BroadcastChannel[Any]) -> dict[str, Any]:
    return {
        "capacity": channel.capacity,
        "subscribers": channel.subscriber_count,
        "next_sequence": channel.next_sequence,
        "closed": channel.closed,
    }


def build_health_payload(
    channel: BroadcastChannel[Any],
    shutdown: ShutdownSignal,
    version: str | None,
) -> dict[str, Any]:
    """Compose the JSON payload for the /health endpoint."""

    return {
        "uptime_seconds": get_uptime_seconds(),
        "channel": channel_snapshot(channel),
        "shutting_down": shutdown.is_set(),
        "version": version or "unknown",
    }


__all__ = ["build_health_payload", "channel_snapshot", "get_uptime_seconds"]
