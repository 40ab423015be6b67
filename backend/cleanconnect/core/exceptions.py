"""
core/exceptions.py

Description:
Defines a standard error response format for the API and the domain error
taxonomy raised by the booking, ledger and lifecycle services.

Every error is an HTTPException, so FastAPI translates it into an HTTP status
and a `{"error": ...}` body at the route boundary.
"""

from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status


class APIError(HTTPException):
    """Custom exception with standardized error response."""

    def __init__(
        self,
        status_code: int,
        message: str,
        headers: dict[str, Any] | None = None,
        **extra: Any,
    ):
        self.message = message
        super().__init__(status_code=status_code, detail={"error": message, **extra}, headers=headers)


class ValidationError(APIError):
    """Bad or missing fields, negative fees, illegal transitions."""

    def __init__(self, message: str, **extra: Any):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, **extra)


class InvalidFeeError(ValidationError):
    """Computed service fee would be negative."""


class InvalidReferenceError(APIError):
    """Malformed identifier."""

    def __init__(self, value: Any):
        super().__init__(status.HTTP_400_BAD_REQUEST, "Invalid ID", value=str(value))


class InsufficientFundsError(APIError):
    """Debit larger than the available balance."""

    def __init__(self, required: Decimal, current: Decimal):
        self.required = required
        self.current = current
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            "Insufficient funds",
            required=str(required),
            current=str(current),
        )


class AuthorizationError(APIError):
    def __init__(self, message: str = "Not authorized to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, message)


class NotFoundError(APIError):
    def __init__(self, message: str = "Not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, message)


class ConcurrentUpdateError(APIError):
    """Another request modified the same record first."""

    def __init__(self, message: str = "The service was modified by another request. Retry."):
        super().__init__(status.HTTP_409_CONFLICT, message)


class PersistenceError(APIError):
    """Store unavailable or write failed."""

    def __init__(self, message: str = "Failed to persist changes"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def parse_reference(value: str | UUID) -> UUID:
    """Parse an identifier coming from a path or body, raising InvalidReferenceError."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidReferenceError(value)
