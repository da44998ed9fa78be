from typing import Dict, Optional

from fastapi import status
from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


class ServiceError(Exception):
    """Base exception for service layer errors."""

    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status
        self.headers = headers


class NotFoundError(ServiceError):
    default_status = status.HTTP_404_NOT_FOUND


class ValidationFailure(ServiceError):
    default_status = status.HTTP_400_BAD_REQUEST


class ConflictError(ServiceError):
    """Unique constraint violation (duplicate code, email, enrollment)."""

    default_status = status.HTTP_400_BAD_REQUEST


class ReferentialBlockError(ServiceError):
    """Restrict-delete or dangling foreign key."""

    default_status = status.HTTP_400_BAD_REQUEST


class CapacityExceededError(ServiceError):
    default_status = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ServiceError):
    default_status = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ServiceError):
    default_status = status.HTTP_403_FORBIDDEN


class RateLimitExceededError(ServiceError):
    default_status = status.HTTP_429_TOO_MANY_REQUESTS


class ServiceUnavailableError(ServiceError):
    default_status = status.HTTP_503_SERVICE_UNAVAILABLE


def classify_integrity_error(exc: IntegrityError) -> Optional[str]:
    """Return "unique", "foreign_key" or None for an IntegrityError.

    PostgreSQL drivers expose the SQLSTATE on the wrapped exception; SQLite only
    gives a message, so fall back to matching its text.
    """
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == UNIQUE_VIOLATION:
        return "unique"
    if code == FOREIGN_KEY_VIOLATION:
        return "foreign_key"
    message = str(orig if orig is not None else exc).lower()
    if "unique constraint" in message or "duplicate key" in message:
        return "unique"
    if "foreign key constraint" in message:
        return "foreign_key"
    return None
