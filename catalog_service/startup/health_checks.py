"""
Startup Health Checks
Fixed, ordered sequence of checks run once before the catalog sync.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple

from ..errors import ExternalCallFailed
from .cancellation import CancellationSignal
from .events import EventSink, LoggingEventSink

if TYPE_CHECKING:
    from ..ingestion.catalog_client import CatalogClient

logger = logging.getLogger(__name__)


@dataclass
class HealthCheckOutcome:
    """Counters accumulated across the sequence."""

    checks_completed: int = 0
    external_calls_made: int = 0
    completed_checks: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "checks_completed": self.checks_completed,
            "external_calls_made": self.external_calls_made,
            "completed_checks": list(self.completed_checks),
        }


@dataclass
class HealthCheck:
    """
    One simulated startup check.

    probe_seconds is the check's own work, settle_seconds the fixed wait
    after it. Steps are logged before the probe.
    """

    name: str
    description: str
    probe_seconds: float = 0.0
    settle_seconds: float = 0.0
    steps: Tuple[str, ...] = ()
    external: bool = False


def default_checks(time_scale: float = 1.0, extra_processing_seconds: float = 30.0) -> List[HealthCheck]:
    """
    Build the standard check list.

    Args:
        time_scale: Multiplier for every simulated duration (0 disables waiting)
        extra_processing_seconds: Additional startup work folded into the final check

    Returns:
        Checks in execution order
    """
    def scaled(seconds: float) -> float:
        return seconds * time_scale

    return [
        HealthCheck(
            name="DatabaseConnectivity",
            description="Testing database connectivity",
            probe_seconds=scaled(0.5),
            settle_seconds=scaled(3.0),
            steps=(
                "Testing database connection pool...",
                "Validating schema and migrations...",
                "Checking database performance metrics...",
            ),
        ),
        HealthCheck(
            name="ConfigurationValidation",
            description="Validating application configuration",
            probe_seconds=scaled(0.5),
            settle_seconds=scaled(2.0),
            steps=(
                "Validating connection strings...",
                "Checking environment variables...",
                "Validating feature flags...",
            ),
        ),
        HealthCheck(
            name="ExternalServicePing",
            description="Pinging external product service",
            external=True,
        ),
        HealthCheck(
            name="CacheWarmup",
            description="Warming up application cache",
            probe_seconds=scaled(1.0),
            settle_seconds=scaled(5.0),
            steps=(
                "Initializing distributed cache...",
                "Pre-loading frequently accessed data...",
                "Building search indexes...",
            ),
        ),
        HealthCheck(
            name="SecurityValidation",
            description="Performing security validations",
            probe_seconds=scaled(0.5),
            settle_seconds=scaled(2.0),
            steps=(
                "Validating SSL certificates...",
                "Checking authentication settings...",
                "Validating security policies...",
            ),
        ),
        HealthCheck(
            name="FinalReadiness",
            description="Final system readiness check",
            probe_seconds=scaled(1.0),
            settle_seconds=scaled(4.0 + extra_processing_seconds),
            steps=(
                "Running system diagnostics...",
                "Checking memory and CPU usage...",
                "Validating service dependencies...",
            ),
        ),
    ]


class HealthCheckSequence:
    """
    Runs the startup checks strictly in order.

    Checks fail only by observing cancellation, which aborts the rest of the
    sequence. The external ping is non-fatal: a failed ping is logged and
    the sequence continues.
    """

    def __init__(
        self,
        client: "CatalogClient",
        checks: Optional[List[HealthCheck]] = None,
        events: Optional[EventSink] = None,
    ):
        """
        Initialize health check sequence.

        Args:
            client: Catalog client used for the external ping
            checks: Checks to run (defaults to default_checks())
            events: Event sink for per-check events
        """
        self.client = client
        self.checks = checks if checks is not None else default_checks()
        self.events = events or LoggingEventSink()

    @property
    def total_simulated_seconds(self) -> float:
        """Sum of every simulated delay in the sequence."""
        return sum(check.probe_seconds + check.settle_seconds for check in self.checks)

    async def run(
        self, signal: CancellationSignal, outcome: Optional[HealthCheckOutcome] = None
    ) -> HealthCheckOutcome:
        """
        Run every check in order.

        Args:
            signal: Shared shutdown signal
            outcome: Outcome to accumulate into; keeps partial counts if cancelled

        Returns:
            The accumulated outcome

        Raises:
            Cancelled: If shutdown is requested during any check
        """
        outcome = outcome if outcome is not None else HealthCheckOutcome()
        logger.info(
            f"Starting startup health checks ({len(self.checks)} checks, "
            f"~{self.total_simulated_seconds:.1f}s simulated work)..."
        )

        for position, check in enumerate(self.checks, start=1):
            logger.info(f"Check {position}: {check.description}...")
            self.events.emit("health_check.started", check=check.name, position=position)

            if check.external:
                await self._run_ping(check, signal, outcome)
            else:
                await self._run_simulated(check, signal)

            outcome.checks_completed += 1
            outcome.completed_checks.append(check.name)
            self.events.emit(
                "health_check.completed",
                check=check.name,
                position=position,
                checks_completed=outcome.checks_completed,
            )

        logger.info(f"All {outcome.checks_completed} startup health checks completed")
        return outcome

    async def _run_simulated(self, check: HealthCheck, signal: CancellationSignal) -> None:
        signal.raise_if_cancelled(check.name)

        for step in check.steps:
            logger.info(step)

        await signal.sleep(check.probe_seconds, operation=check.name)
        signal.raise_if_cancelled(check.name)
        logger.info(f"{check.name} passed")

        await signal.sleep(check.settle_seconds, operation=check.name)

    async def _run_ping(
        self, check: HealthCheck, signal: CancellationSignal, outcome: HealthCheckOutcome
    ) -> None:
        signal.raise_if_cancelled(check.name)

        try:
            status_code = await signal.guard(self.client.ping(), operation=check.name)
            logger.info(f"External service is available and responding ({status_code})")
            self.events.emit("health_check.ping_succeeded", status_code=status_code)
        except ExternalCallFailed as e:
            logger.warning(f"External service not available, but continuing startup: {e.message}")
            self.events.emit(
                "health_check.ping_failed", url=e.url, status_code=e.status_code
            )
        finally:
            outcome.external_calls_made += 1
