"""
Cancellation Signal
Shared shutdown signal and the cancellable suspension helpers built on it.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from ..errors import Cancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationSignal:
    """
    One-shot shutdown signal observed by every suspension point.

    Fired once at process shutdown. Delays and outbound calls wait on it so
    they return promptly instead of running to completion.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        """Whether shutdown has been requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request shutdown. Safe to call more than once."""
        if not self._event.is_set():
            logger.info("Cancellation requested")
        self._event.set()

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        """
        Cancellation point.

        Raises:
            Cancelled: If shutdown has been requested
        """
        if self._event.is_set():
            raise Cancelled(operation)

    async def wait(self) -> None:
        """Block until shutdown is requested."""
        await self._event.wait()

    async def sleep(self, seconds: float, operation: str = "delay") -> None:
        """
        Suspend for a fixed duration while observing cancellation.

        Args:
            seconds: Duration to wait; zero or less only checks the signal
            operation: Name reported in the Cancelled error

        Raises:
            Cancelled: If shutdown is requested before or during the wait
        """
        self.raise_if_cancelled(operation)
        if seconds <= 0:
            return

        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return

        raise Cancelled(operation)

    async def guard(self, awaitable: Awaitable[T], operation: str = "call", timeout: Optional[float] = None) -> T:
        """
        Run an awaitable, abandoning it if shutdown is requested first.

        Args:
            awaitable: Outbound call to run
            operation: Name reported in the Cancelled error
            timeout: Optional overall timeout in seconds

        Returns:
            The awaitable's result

        Raises:
            Cancelled: If shutdown is requested before the call finishes
            asyncio.TimeoutError: If the timeout elapses first
        """
        call = asyncio.ensure_future(awaitable)
        if self._event.is_set():
            call.cancel()
            raise Cancelled(operation)

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {call, waiter}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            call.cancel()
            raise
        finally:
            waiter.cancel()

        if call in done:
            return call.result()

        call.cancel()
        try:
            await call
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"Abandoned {operation} raised while cancelling: {e}")

        if self._event.is_set():
            raise Cancelled(operation)
        raise asyncio.TimeoutError(f"{operation} timed out after {timeout}s")
