from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI

from chatrelay.core.shutdown import ShutdownSignal


@pytest.mark.asyncio
async def test_trigger_fires_once() -> None:
    signal = ShutdownSignal()
    assert not signal.is_set()

    assert signal.trigger("first") is True
    assert signal.trigger("second") is False

    assert signal.is_set()
    assert signal.reason == "first"
    await asyncio.wait_for(signal.wait(), timeout=1)


@pytest.mark.asyncio
async def test_trigger_releases_every_waiter() -> None:
    signal = ShutdownSignal()
    waiters = [asyncio.ensure_future(signal.wait()) for _ in range(5)]
    await asyncio.sleep(0)
    assert not any(waiter.done() for waiter in waiters)

    signal.trigger()

    await asyncio.wait_for(asyncio.gather(*waiters), timeout=1)


@pytest.mark.asyncio
async def test_lifespan_teardown_signals_and_closes_channel(app: FastAPI) -> None:
    async with app.router.lifespan_context(app):
        assert not app.state.shutdown.is_set()
        assert not app.state.channel.closed

    assert app.state.shutdown.is_set()
    assert app.state.shutdown.reason == "lifespan shutdown"
    assert app.state.channel.closed
