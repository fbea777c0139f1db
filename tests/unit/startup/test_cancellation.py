"""
Tests for the cancellation signal and its suspension helpers.
"""

import asyncio
import time

import pytest

from catalog_service.errors import Cancelled
from catalog_service.startup.cancellation import CancellationSignal


@pytest.mark.asyncio
async def test_sleep_returns_after_duration():
    signal = CancellationSignal()

    started = time.monotonic()
    await signal.sleep(0.05)

    assert time.monotonic() - started >= 0.04
    assert not signal.is_cancelled


@pytest.mark.asyncio
async def test_sleep_raises_promptly_when_cancelled_mid_wait():
    signal = CancellationSignal()
    asyncio.get_running_loop().call_later(0.02, signal.cancel)

    started = time.monotonic()
    with pytest.raises(Cancelled) as exc_info:
        await signal.sleep(30, operation="CacheWarmup")

    assert time.monotonic() - started < 1.0
    assert exc_info.value.operation == "CacheWarmup"


@pytest.mark.asyncio
async def test_zero_sleep_still_observes_cancellation():
    signal = CancellationSignal()
    await signal.sleep(0)

    signal.cancel()
    with pytest.raises(Cancelled):
        await signal.sleep(0)


def test_raise_if_cancelled():
    signal = CancellationSignal()
    signal.raise_if_cancelled("check")

    signal.cancel()
    signal.cancel()  # idempotent
    with pytest.raises(Cancelled):
        signal.raise_if_cancelled("check")


@pytest.mark.asyncio
async def test_guard_returns_result():
    signal = CancellationSignal()

    async def call():
        await asyncio.sleep(0)
        return 42

    assert await signal.guard(call()) == 42


@pytest.mark.asyncio
async def test_guard_propagates_call_errors():
    signal = CancellationSignal()

    async def call():
        raise ValueError("bad payload")

    with pytest.raises(ValueError, match="bad payload"):
        await signal.guard(call())


@pytest.mark.asyncio
async def test_guard_abandons_call_on_cancellation():
    signal = CancellationSignal()
    finished = asyncio.Event()
    abandoned = asyncio.Event()

    async def slow_call():
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            abandoned.set()
            raise
        finished.set()

    asyncio.get_running_loop().call_later(0.02, signal.cancel)

    with pytest.raises(Cancelled):
        await signal.guard(slow_call(), operation="page fetch")

    assert abandoned.is_set()
    assert not finished.is_set()


@pytest.mark.asyncio
async def test_guard_refuses_to_start_after_cancellation():
    signal = CancellationSignal()
    signal.cancel()
    started = []

    async def call():
        started.append(True)

    with pytest.raises(Cancelled):
        await signal.guard(call())

    await asyncio.sleep(0)
    assert started == []


@pytest.mark.asyncio
async def test_guard_timeout():
    signal = CancellationSignal()

    with pytest.raises(asyncio.TimeoutError):
        await signal.guard(asyncio.sleep(3600), timeout=0.02)
