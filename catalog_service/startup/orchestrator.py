"""
Startup Orchestrator
Runs the health check sequence and then the catalog sync as one task.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..errors import Cancelled, SyncFailed
from .cancellation import CancellationSignal
from .events import EventSink, LoggingEventSink
from .health_checks import HealthCheckOutcome, HealthCheckSequence

if TYPE_CHECKING:
    from ..ingestion.sync_engine import SyncEngine, SyncResult

logger = logging.getLogger(__name__)


class OrchestrationState(str, Enum):
    """Lifecycle of the startup task."""

    NOT_STARTED = "not_started"
    RUNNING_CHECKS = "running_checks"
    RUNNING_SYNC = "running_sync"
    COMPLETED = "completed"
    FAILED = "failed"


class StartupOrchestrator:
    """
    Single long-running startup task: health checks, then sync.

    State machine:
        not_started -> running_checks -> running_sync -> completed
    with `failed` reachable from either running state. Cancellation is a
    clean stop (`stopped` is set); any other exception is logged with its
    traceback and kept in `error`. Neither reaches the host. There is no
    retry: one instance runs once.
    """

    def __init__(
        self,
        health_checks: HealthCheckSequence,
        sync_engine: "SyncEngine",
        events: Optional[EventSink] = None,
    ):
        self.health_checks = health_checks
        self.sync_engine = sync_engine
        self.events = events or LoggingEventSink()

        self.state = OrchestrationState.NOT_STARTED
        self.health_outcome: Optional[HealthCheckOutcome] = None
        self.sync_result: Optional["SyncResult"] = None
        self.error: Optional[str] = None
        self.stopped = False

    @property
    def finished(self) -> bool:
        return self.state in (OrchestrationState.COMPLETED, OrchestrationState.FAILED)

    async def run(self, signal: CancellationSignal) -> None:
        """
        Run health checks then sync.

        Args:
            signal: Shared shutdown signal

        Raises:
            RuntimeError: If this orchestrator already ran
            asyncio.CancelledError: If the task itself is cancelled
        """
        if self.state is not OrchestrationState.NOT_STARTED:
            raise RuntimeError(f"Startup orchestration already ran (state={self.state.value})")

        logger.info("Startup orchestration starting...")

        try:
            self._transition(OrchestrationState.RUNNING_CHECKS)
            self.health_outcome = HealthCheckOutcome()
            await self.health_checks.run(signal, self.health_outcome)

            logger.info(
                f"Startup validation: {self.health_outcome.checks_completed} checks passed, "
                f"{self.health_outcome.external_calls_made} external calls made"
            )
            self.events.emit("health_checks.finished", **self.health_outcome.to_dict())

            self._transition(OrchestrationState.RUNNING_SYNC)
            self.sync_result = await self.sync_engine.sync(signal)

            if self.sync_result.cancelled:
                self._stop(f"sync cancelled after {self.sync_result.total_products_synced} products")
                return

            logger.info(f"Total products synced: {self.sync_result.total_products_synced}")
            self._transition(OrchestrationState.COMPLETED)

        except Cancelled as e:
            self._stop(e.message)

        except asyncio.CancelledError:
            self.stopped = True
            self._transition(OrchestrationState.FAILED)
            logger.warning("Startup orchestration task was cancelled")
            raise

        except Exception as e:
            if isinstance(e, SyncFailed) and e.result is not None:
                self.sync_result = e.result
            self.error = str(e) or e.__class__.__name__
            logger.error(
                f"Error in startup orchestration during {self.state.value}: {e}",
                exc_info=True,
            )
            self._transition(OrchestrationState.FAILED)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "state": self.state.value,
            "stopped": self.stopped,
            "error": self.error,
            "health_checks": self.health_outcome.to_dict() if self.health_outcome else None,
            "sync": self.sync_result.to_dict() if self.sync_result else None,
        }

    def _stop(self, reason: str) -> None:
        self.stopped = True
        logger.info(f"Startup orchestration stopped: {reason}")
        self._transition(OrchestrationState.FAILED)

    def _transition(self, state: OrchestrationState) -> None:
        previous = self.state
        self.state = state
        self.events.emit(
            "orchestration.state_changed", previous=previous.value, state=state.value
        )
