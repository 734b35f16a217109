"""Turn a channel subscription into a stream of server-sent events."""
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from loguru import logger
from sse_starlette import ServerSentEvent

from chatrelay.core.metrics import adjust_event_streams, record_subscriber_lag
from chatrelay.core.shutdown import ShutdownSignal
from chatrelay.schemas.message import ChatMessage
from chatrelay.services.broadcast import ChannelClosed, ChannelLagged, Subscription


async def next_message(
    subscription: Subscription[ChatMessage],
    shutdown: ShutdownSignal,
) -> ChatMessage | None:
    """Wait for the next message or for shutdown, whichever comes first.

    Returns ``None`` when shutdown wins. A signal that is already set wins even
    if messages are waiting. Channel errors from ``recv`` propagate.
    """

    if shutdown.is_set():
        return None
    receive = asyncio.ensure_future(subscription.recv())
    stop = asyncio.ensure_future(shutdown.wait())
    try:
        done, _ = await asyncio.wait({receive, stop}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (receive, stop):
            if not task.done():
                task.cancel()
    if stop in done:
        if receive.done() and not receive.cancelled():
            # Retrieve so a lag or close raised in the same step is not reported as unhandled.
            receive.exception()
        return None
    return receive.result()


async def message_events(
    subscription: Subscription[ChatMessage],
    shutdown: ShutdownSignal,
) -> AsyncIterator[ServerSentEvent]:
    """Yield one event per delivered message until the stream has to end.

    The stream ends when the channel closes or the shutdown signal fires.
    Messages lost to lag are skipped silently. The subscription is released
    however the generator finishes, including cancellation on disconnect.
    """

    log = logger.bind(cursor=subscription.cursor)
    adjust_event_streams(1)
    reason = "closed"
    try:
        while True:
            try:
                message = await next_message(subscription, shutdown)
            except ChannelLagged as exc:
                record_subscriber_lag(exc.skipped)
                log.bind(skipped=exc.skipped, cursor=subscription.cursor).warning("subscription_lagged")
                continue
            except ChannelClosed:
                reason = "channel_closed"
                break
            if message is None:
                reason = "shutdown"
                break
            yield ServerSentEvent(data=message.model_dump_json())
    except asyncio.CancelledError:
        reason = "disconnected"
        raise
    finally:
        subscription.close()
        adjust_event_streams(-1)
        log.bind(reason=reason).info("event_stream_closed")


__all__ = ["message_events", "next_message"]
