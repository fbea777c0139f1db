"""
Error Handlers
Maps API and domain exceptions to the standard JSON error body.
"""

import logging
from typing import Any, Optional
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ..errors import CatalogServiceError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, error_type: str, details: Any = None) -> JSONResponse:
    """Build `{"error": {"message", "type", "details"}}` with the given status."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "message": message,
                "type": error_type,
                "details": details if details is not None else {},
            }
        },
    )


class APIError(Exception):
    """Exception carrying its own HTTP status and error details."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[dict] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        return error_response(self.status_code, self.message, self.__class__.__name__, self.details)


class ServiceNotReadyError(APIError):
    """Request arrived before the host accepts traffic."""

    def __init__(self, readiness: str, mode: str):
        super().__init__(
            message="Service is starting up and not accepting requests yet",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"readiness": readiness, "mode": mode},
        )


def setup_error_handlers(app: FastAPI) -> None:
    """
    Register exception handlers on the app.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(APIError)
    async def handle_api_error(request: Request, exc: APIError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            f"{exc.__class__.__name__} on {request.url.path}: {exc.message}",
            extra={"status_code": exc.status_code, "details": exc.details},
        )
        return exc.to_response()

    @app.exception_handler(CatalogServiceError)
    async def handle_domain_error(request: Request, exc: CatalogServiceError):
        # Domain errors should be contained by the startup task; reaching a
        # request handler means a query path raised one.
        logger.error(
            f"{exc.__class__.__name__} on {request.url.path}: {exc.message}",
            exc_info=True,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message, exc.__class__.__name__, exc.details
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request on {request.url.path}: {exc}")
        problems = [
            {"loc": list(err.get("loc", [])), "msg": str(err.get("msg", "")), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY, "Request validation failed", "ValidationError", problems
        )

    @app.exception_handler(ValueError)
    async def handle_value_error(request: Request, exc: ValueError):
        logger.warning(f"Bad value on {request.url.path}: {exc}")
        return error_response(status.HTTP_400_BAD_REQUEST, str(exc), "ValueError")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred", "InternalServerError"
        )
