# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application error taxonomy.

Every failure a service operation reports to its caller is an AppError
subclass carrying a stable code, the HTTP status the API layer maps it to,
a human-readable message and a details mapping.

Domain-rule violations are raised directly by the services. Anything else
that escapes a service operation is re-raised as DatabaseError with the
original exception chained as ``__cause__``.

Example:
    >>> raise ClassroomFullError(details={"classroom_id": cid})
    >>> err.to_dict()
    {'code': 'CLASSROOM_FULL', 'message': 'Classroom has reached maximum capacity', ...}
"""

from enum import Enum
from typing import Any

from src.utils.datetime import utc_now


class ErrorCode(str, Enum):
    """Stable error codes exposed to API clients."""

    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    ACCESS_DENIED = "ACCESS_DENIED"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_EXISTS = "RESOURCE_EXISTS"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_OPERATION = "INVALID_OPERATION"
    CLASSROOM_FULL = "CLASSROOM_FULL"
    INVALID_TRANSFER = "INVALID_TRANSFER"
    SCHOOL_INACTIVE = "SCHOOL_INACTIVE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"


class AppError(Exception):
    """Base exception for all reportable application errors.

    Attributes:
        code: Stable error code.
        status_code: HTTP status the API layer responds with.
        message: Human-readable error description.
        details: Extra structured context (ids, limits, field names).
        timestamp: When the error was raised.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable description; the class default when omitted.
            details: Extra structured context.
        """
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details: dict[str, Any] = dict(details or {})
        self.timestamp = utc_now()

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Render the error for an API response body."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class AuthRequiredError(AppError):
    """Raised when a request carries no credentials."""

    code = ErrorCode.AUTH_REQUIRED
    status_code = 401
    default_message = "Authentication required"


class InvalidTokenError(AppError):
    """Raised when a bearer token is malformed, expired or revoked."""

    code = ErrorCode.INVALID_TOKEN
    status_code = 401
    default_message = "Invalid or expired token"


class AccessDeniedError(AppError):
    """Raised when the caller's role or school scope forbids the operation."""

    code = ErrorCode.ACCESS_DENIED
    status_code = 403
    default_message = "Access denied"


class AccountLockedError(AppError):
    """Raised when login is attempted on a temporarily locked account."""

    code = ErrorCode.ACCOUNT_LOCKED
    status_code = 423
    default_message = "Account is temporarily locked"


class ResourceNotFoundError(AppError):
    """Raised when a requested entity does not exist or is not visible."""

    code = ErrorCode.RESOURCE_NOT_FOUND
    status_code = 404
    default_message = "Resource not found"


class ResourceExistsError(AppError):
    """Raised when a uniqueness rule would be violated."""

    code = ErrorCode.RESOURCE_EXISTS
    status_code = 409
    default_message = "Resource already exists"


class InvalidInputError(AppError):
    """Raised for malformed identifiers, empty updates and bad parameters."""

    code = ErrorCode.INVALID_INPUT
    status_code = 400
    default_message = "Invalid input"


class InvalidOperationError(AppError):
    """Raised when an operation conflicts with current occupancy."""

    code = ErrorCode.INVALID_OPERATION
    status_code = 409
    default_message = "Operation not allowed in the current state"


class ClassroomFullError(AppError):
    """Raised when no seat is left in the target classroom."""

    code = ErrorCode.CLASSROOM_FULL
    status_code = 422
    default_message = "Classroom has reached maximum capacity"


class InvalidTransferError(AppError):
    """Raised when a student cannot be transferred as requested."""

    code = ErrorCode.INVALID_TRANSFER
    status_code = 422
    default_message = "Invalid transfer request"


class SchoolInactiveError(AppError):
    """Raised when the target school does not accept changes."""

    code = ErrorCode.SCHOOL_INACTIVE
    status_code = 422
    default_message = "School is not active"


class InternalError(AppError):
    """Raised for unexpected failures outside the persistence layer."""

    code = ErrorCode.INTERNAL_ERROR
    status_code = 500
    default_message = "Internal server error"


class DatabaseError(AppError):
    """Raised when a storage operation fails unexpectedly.

    Attributes:
        original_error: The underlying exception, also chained as __cause__.
    """

    code = ErrorCode.DATABASE_ERROR
    status_code = 500
    default_message = "Database operation failed"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            details: Operation name, relevant ids and the original message.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message, details)
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.code.value}: {self.message}: {self.original_error}"
        return super().__str__()


class ExternalServiceError(AppError):
    """Raised when a required external collaborator is unavailable."""

    code = ErrorCode.EXTERNAL_SERVICE_ERROR
    status_code = 503
    default_message = "External service unavailable"


__all__ = [
    "ErrorCode",
    "AppError",
    "AuthRequiredError",
    "InvalidTokenError",
    "AccessDeniedError",
    "AccountLockedError",
    "ResourceNotFoundError",
    "ResourceExistsError",
    "InvalidInputError",
    "InvalidOperationError",
    "ClassroomFullError",
    "InvalidTransferError",
    "SchoolInactiveError",
    "InternalError",
    "DatabaseError",
    "ExternalServiceError",
]
