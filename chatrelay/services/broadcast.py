"""In-memory broadcast channel backed by a fixed-size ring buffer."""
from __future__ import annotations

import asyncio
from typing import Generic, TypeVar, cast

from loguru import logger

T = TypeVar("T")

DEFAULT_CAPACITY = 1024


class ChannelError(Exception):
    """Base class for errors reported by a broadcast channel."""


class ChannelClosed(ChannelError):
    """Raised once the channel is torn down and nothing is left to read."""

    def __init__(self) -> None:
        super().__init__("Broadcast channel is closed")


class ChannelLagged(ChannelError):
    """Raised when a subscription fell out of the retained window.

    The subscription has already been moved to the oldest retained message, so
    the caller may simply call ``recv`` again.
    """

    def __init__(self, skipped: int) -> None:
        super().__init__(f"Subscription lagged behind by {skipped} messages")
        self.skipped = skipped


class Subscription(Generic[T]):
    """A read cursor into a :class:`BroadcastChannel`."""

    def __init__(self, channel: BroadcastChannel[T], cursor: int) -> None:
        self._channel = channel
        self._cursor = cursor
        self._closed = False

    @property
    def cursor(self) -> int:
        """Sequence number of the next message this subscription will read."""

        return self._cursor

    @property
    def closed(self) -> bool:
        return self._closed

    async def recv(self) -> T:
        """Wait for and return the next message in publish order.

        Raises :class:`ChannelLagged` if unread messages were overwritten and
        :class:`ChannelClosed` once the channel is closed and drained.
        """

        channel = self._channel
        while True:
            if self._closed:
                raise ChannelClosed()
            if self._cursor < channel.next_sequence:
                oldest = channel.oldest_sequence
                if self._cursor < oldest:
                    skipped = oldest - self._cursor
                    self._cursor = oldest
                    raise ChannelLagged(skipped)
                message = channel._slot(self._cursor)
                self._cursor += 1
                return message
            if channel.closed:
                raise ChannelClosed()
            await channel._wakeup.wait()

    def close(self) -> None:
        """Release the cursor; further reads raise :class:`ChannelClosed`."""

        if self._closed:
            return
        self._closed = True
        self._channel._release(self)

    def __enter__(self) -> Subscription[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class BroadcastChannel(Generic[T]):
    """Multi-producer, multi-consumer fan-out with a bounded replay window.

    Every published message gets the next global sequence number and is stored
    in slot ``sequence % capacity``. Subscribers keep their own cursor, so a
    slow reader never holds up a publisher: once it falls more than
    ``capacity`` messages behind it is told how many it missed.

    All methods must be called from the event loop thread. ``publish`` never
    yields, so concurrent publishers are linearized by the loop itself.
    """

    def __init__(self, *, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._slots: list[T | None] = [None] * capacity
        self._next_sequence = 0
        self._subscriptions: set[Subscription[T]] = set()
        self._wakeup = asyncio.Event()
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def next_sequence(self) -> int:
        """Sequence number the next published message will receive."""

        return self._next_sequence

    @property
    def oldest_sequence(self) -> int:
        """Sequence number of the oldest message still retained."""

        return max(0, self._next_sequence - self._capacity)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, message: T) -> int:
        """Append ``message`` and wake every waiting subscriber.

        Returns the number of active subscriptions. Zero is not an error.
        """

        if self._closed:
            raise ChannelClosed()
        self._slots[self._next_sequence % self._capacity] = message
        self._next_sequence += 1
        self._notify()
        return len(self._subscriptions)

    def subscribe(self) -> Subscription[T]:
        """Open a subscription positioned at the current write sequence."""

        if self._closed:
            raise ChannelClosed()
        subscription: Subscription[T] = Subscription(self, self._next_sequence)
        self._subscriptions.add(subscription)
        logger.bind(
            cursor=subscription.cursor,
            subscribers=len(self._subscriptions),
        ).debug("subscription_opened")
        return subscription

    def close(self) -> None:
        """Tear the channel down. Waiting subscribers drain and then stop."""

        if self._closed:
            return
        self._closed = True
        self._notify()
        logger.bind(
            next_sequence=self._next_sequence,
            subscribers=len(self._subscriptions),
        ).info("channel_closed")

    def _notify(self) -> None:
        # Waiters hold a reference to the old event; swap before setting it.
        wakeup, self._wakeup = self._wakeup, asyncio.Event()
        wakeup.set()

    def _slot(self, sequence: int) -> T:
        return cast(T, self._slots[sequence % self._capacity])

    def _release(self, subscription: Subscription[T]) -> None:
        self._subscriptions.discard(subscription)
        logger.bind(subscribers=len(self._subscriptions)).debug("subscription_closed")


__all__ = [
    "DEFAULT_CAPACITY",
    "BroadcastChannel",
    "ChannelClosed",
    "ChannelError",
    "ChannelLagged",
    "Subscription",
]
