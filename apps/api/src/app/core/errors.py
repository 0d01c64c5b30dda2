"""
Service Errors

Base exception shared by every module's service layer, plus the store-level
failures that any service can surface. Routers convert these to HTTP errors
with ``raise_http_error``.
"""

from fastapi import HTTPException
from sqlalchemy.exc import InterfaceError, OperationalError


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ConflictOnWriteError(ServiceError):
    """Raised when the store reports a write conflict that a retry did not resolve."""

    def __init__(self, message: str = "The record could not be saved due to a concurrent write."):
        super().__init__(
            message=message,
            error_code="CONFLICT_ON_WRITE",
            status_code=409,
        )


class StoreUnavailableError(ServiceError):
    """Raised when the database cannot be reached."""

    def __init__(self):
        super().__init__(
            message="The data store is temporarily unavailable. Please try again later.",
            error_code="STORE_UNAVAILABLE",
            status_code=503,
        )


# SQLAlchemy errors meaning the store itself is unreachable
STORE_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError)


def raise_http_error(e: ServiceError) -> None:
    """Convert a service error to an HTTPException."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e
