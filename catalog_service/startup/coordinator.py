"""
Host Lifecycle Coordinator
Ties the startup orchestration task to the host's readiness and shutdown.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Optional

from .cancellation import CancellationSignal
from .events import EventSink, LoggingEventSink
from .orchestrator import StartupOrchestrator

logger = logging.getLogger(__name__)


class SchedulingMode(str, Enum):
    """How host readiness relates to the startup task."""

    GATE = "gate"  # Ready only after orchestration finishes
    COOPERATIVE = "cooperative"  # Ready immediately, orchestration runs alongside


class ReadinessState(str, Enum):
    """Readiness signal owned by the coordinator."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    READY = "ready"


class HostLifecycleCoordinator:
    """
    One coordinator for both scheduling modes.

    Gate mode: start() returns only after the orchestration task finishes
    (or shutdown is requested), and requests are not accepted before then.

    Cooperative mode: start() returns as soon as the task is created and
    requests are accepted immediately; readiness is advisory only.
    """

    def __init__(
        self,
        orchestrator: StartupOrchestrator,
        mode: SchedulingMode = SchedulingMode.COOPERATIVE,
        shutdown_timeout: float = 5.0,
        signal: Optional[CancellationSignal] = None,
        events: Optional[EventSink] = None,
    ):
        """
        Initialize coordinator.

        Args:
            orchestrator: Startup task to run
            mode: Scheduling mode
            shutdown_timeout: Seconds stop() waits before cancelling the task
            signal: Shared shutdown signal (created if omitted)
            events: Event sink for readiness events
        """
        self.orchestrator = orchestrator
        self.mode = SchedulingMode(mode)
        self.shutdown_timeout = shutdown_timeout
        self.signal = signal or CancellationSignal()
        self.events = events or LoggingEventSink()

        self.readiness = ReadinessState.NOT_STARTED
        self._task: Optional[asyncio.Task] = None

    @property
    def gate(self) -> bool:
        return self.mode is SchedulingMode.GATE

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def is_accepting_requests(self) -> bool:
        """Whether the host should serve non-probe requests right now."""
        if self._task is None or self.signal.is_cancelled:
            return False
        if self.gate:
            return self.readiness is ReadinessState.READY
        return True

    async def start(self) -> None:
        """
        Start the orchestration task.

        In gate mode this waits until the task finishes or shutdown is
        requested.
        """
        if self._task is not None:
            raise RuntimeError("Startup orchestration already started")

        logger.info(f"Starting startup orchestration in {self.mode.value} mode")
        self._set_readiness(ReadinessState.IN_PROGRESS)
        self._task = asyncio.create_task(
            self.run_orchestration(self.signal), name="startup-orchestration"
        )

        if self.gate:
            logger.info("Gate mode: host readiness waits for startup orchestration")
            await self.wait_until_ready()
            if self.signal.is_cancelled:
                logger.warning("Gate released by shutdown request: host not accepting requests")
            else:
                logger.info("Gate released: host now accepting requests")
        else:
            logger.info("Cooperative mode: host accepting requests while orchestration runs")

    async def run_orchestration(self, signal: CancellationSignal) -> None:
        """Host entry point: run the orchestrator once, then mark ready."""
        try:
            await self.orchestrator.run(signal)
        finally:
            self._set_readiness(ReadinessState.READY)

    async def wait_until_ready(self) -> None:
        """Wait until the task finishes or shutdown is requested."""
        if self._task is None:
            raise RuntimeError("Startup orchestration not started")

        shutdown = asyncio.ensure_future(self.signal.wait())
        try:
            await asyncio.wait({self._task, shutdown}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            shutdown.cancel()

    def request_shutdown(self) -> None:
        """Fire the shared cancellation signal."""
        self.signal.cancel()

    async def stop(self) -> None:
        """
        Signal shutdown and wait for the task to stop.

        The task gets shutdown_timeout seconds to reach a cancellation point
        before it is cancelled outright.
        """
        self.request_shutdown()
        if self._task is None:
            return

        if not self._task.done():
            done, _ = await asyncio.wait({self._task}, timeout=self.shutdown_timeout)
            if not done:
                logger.warning(
                    f"Startup orchestration did not stop within {self.shutdown_timeout}s, cancelling"
                )
                self._task.cancel()
                await asyncio.wait({self._task})

        if not self._task.cancelled() and self._task.exception() is not None:
            logger.error(
                "Startup orchestration task ended with an exception",
                exc_info=self._task.exception(),
            )
        logger.info(f"Startup orchestration finished in state {self.orchestrator.state.value}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "mode": self.mode.value,
            "readiness": self.readiness.value,
            "accepting_requests": self.is_accepting_requests,
            "shutdown_requested": self.signal.is_cancelled,
            "orchestration": self.orchestrator.to_dict(),
        }

    def _set_readiness(self, readiness: ReadinessState) -> None:
        if readiness is self.readiness:
            return
        previous = self.readiness
        self.readiness = readiness
        self.events.emit(
            "host.readiness_changed",
            previous=previous.value,
            readiness=readiness.value,
            mode=self.mode.value,
        )
