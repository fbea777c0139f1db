"""
Health Check Endpoints
Probes and startup status. Always reachable, including while the host is gated.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any
from fastapi import APIRouter, Depends, Response, status

from ...startup.coordinator import HostLifecycleCoordinator
from ...startup.events import EventSink
from ..dependencies import get_coordinator, get_event_sink

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """
    Basic health check.

    Returns:
        Simple health status
    """
    return {"status": "healthy", "timestamp": _now()}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> Dict[str, str]:
    """
    Liveness probe.

    The process is alive even while startup orchestration is running or
    has failed.
    """
    return {"status": "alive", "timestamp": _now()}


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(
    response: Response,
    coordinator: HostLifecycleCoordinator = Depends(get_coordinator),
) -> Dict[str, Any]:
    """
    Readiness probe.

    Answers 503 until the host accepts requests (gate mode: after startup
    orchestration finishes; cooperative mode: as soon as it starts).

    Returns:
        Readiness status
    """
    if not coordinator.is_accepting_requests:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {
            "status": "not_ready",
            "readiness": coordinator.readiness.value,
            "mode": coordinator.mode.value,
            "timestamp": _now(),
        }

    return {
        "status": "ready",
        "readiness": coordinator.readiness.value,
        "mode": coordinator.mode.value,
        "timestamp": _now(),
    }


@router.get("/startup", status_code=status.HTTP_200_OK)
async def startup_status(
    coordinator: HostLifecycleCoordinator = Depends(get_coordinator),
    events: EventSink = Depends(get_event_sink),
) -> Dict[str, Any]:
    """
    Startup orchestration status.

    Returns:
        Scheduling mode, readiness, orchestration state, health check
        outcome, sync result and startup event counts
    """
    return {**coordinator.to_dict(), "events": events.snapshot(), "timestamp": _now()}
