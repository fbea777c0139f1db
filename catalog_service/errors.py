"""
Domain Errors
Exception taxonomy for startup orchestration and catalog sync.
"""

from typing import Any, Dict, Optional


class CatalogServiceError(Exception):
    """Base exception for startup and sync errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class Cancelled(CatalogServiceError):
    """
    Raised when an operation observes the shutdown signal.

    Always recovered locally; never reported as a failure.
    """

    def __init__(self, operation: str = "operation"):
        super().__init__(message=f"{operation} cancelled", details={"operation": operation})
        self.operation = operation


class ExternalCallFailed(CatalogServiceError):
    """Raised when an outbound health ping errors or returns a non-success status."""

    def __init__(self, url: str, status_code: Optional[int] = None, reason: Optional[str] = None):
        if status_code is not None:
            message = f"External call to {url} returned status {status_code}"
        else:
            message = f"External call to {url} failed: {reason}"
        super().__init__(
            message=message, details={"url": url, "status_code": status_code, "reason": reason}
        )
        self.url = url
        self.status_code = status_code


class SourceUnavailable(CatalogServiceError):
    """Raised when the catalog source answers a page request with a non-success status."""

    def __init__(self, offset: int, status_code: int):
        super().__init__(
            message=f"Catalog page at offset {offset} returned status {status_code}",
            details={"offset": offset, "status_code": status_code},
        )
        self.offset = offset
        self.status_code = status_code


class SyncFailed(CatalogServiceError):
    """
    Raised for unexpected I/O or deserialization faults during sync.

    Carries the partial sync result so callers can report what was stored.
    """

    def __init__(self, message: str, result: Any = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, details=details)
        self.result = result
