"""
Readiness Gate Middleware
Rejects non-probe requests while the host is not accepting traffic.
"""

import logging
from typing import Callable, Iterable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..errors import ServiceNotReadyError

logger = logging.getLogger(__name__)

PROBE_PATHS = ("/", "/health", "/live", "/ready", "/startup", "/docs", "/redoc", "/openapi.json")


class ReadinessGateMiddleware(BaseHTTPMiddleware):
    """
    Answers 503 for every non-probe path until the coordinator accepts requests.

    In cooperative mode the coordinator accepts as soon as it has started, so
    this only matters in gate mode or before startup.
    """

    def __init__(self, app, probe_paths: Iterable[str] = PROBE_PATHS):
        super().__init__(app)
        self.probe_paths = frozenset(probe_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.probe_paths:
            return await call_next(request)

        coordinator = request.app.state.coordinator
        if not coordinator.is_accepting_requests:
            logger.info(
                f"Rejecting {request.method} {request.url.path}: host not ready",
                extra={"readiness": coordinator.readiness.value, "mode": coordinator.mode.value},
            )
            return ServiceNotReadyError(
                readiness=coordinator.readiness.value, mode=coordinator.mode.value
            ).to_response()

        return await call_next(request)
