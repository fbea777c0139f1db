"""
Middleware
Custom middleware for FastAPI application.
"""

from .logging import RequestLoggingMiddleware
from .readiness import ReadinessGateMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "ReadinessGateMiddleware",
]
