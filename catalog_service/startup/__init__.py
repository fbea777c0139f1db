"""
Startup Orchestration
Cancellation signal, health checks, orchestrator, and host lifecycle coordinator.
"""

from .cancellation import CancellationSignal
from .events import EventSink, LoggingEventSink
from .health_checks import HealthCheck, HealthCheckOutcome, HealthCheckSequence, default_checks
from .orchestrator import OrchestrationState, StartupOrchestrator
from .coordinator import HostLifecycleCoordinator, ReadinessState, SchedulingMode

__all__ = [
    "CancellationSignal",
    "EventSink",
    "LoggingEventSink",
    "HealthCheck",
    "HealthCheckOutcome",
    "HealthCheckSequence",
    "default_checks",
    "OrchestrationState",
    "StartupOrchestrator",
    "HostLifecycleCoordinator",
    "ReadinessState",
    "SchedulingMode",
]
