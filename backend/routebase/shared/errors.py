"""
Error taxonomy.

Every error the route pipeline raises derives from RouteBaseError and
carries the HTTP status the API layer answers with.

    ValidationError       400  malformed input, bad coordinates, bad file
      InvalidFormatError  400  track bytes are not a GPX document
    UnauthenticatedError  401  no owner in the request
    NotFoundError         404  route missing or owned by someone else
    StorageError          502  blob store I/O failed
    PersistenceError      500  relational store I/O failed
    DerivationError            feature derivation failed (only logged)
"""

from typing import Optional


class RouteBaseError(Exception):
    """Base class for all route pipeline errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RouteBaseError):
    """Input rejected before any side effect."""

    status_code = 400


class InvalidFormatError(ValidationError):
    """Raw bytes lack the structure of a GPX document."""


class UnauthenticatedError(RouteBaseError):
    """No authenticated owner supplied."""

    status_code = 401

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class NotFoundError(RouteBaseError):
    """Route does not exist or belongs to another owner."""

    status_code = 404

    def __init__(self, message: str = "Route not found"):
        super().__init__(message)


class StorageError(RouteBaseError):
    """Blob store operation failed."""

    status_code = 502


class PersistenceError(RouteBaseError):
    """
    Relational store operation failed.

    When the failure triggered a compensating blob delete that also failed,
    that second failure is kept in `compensation_error` and included in the
    message.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        compensation_error: Optional[BaseException] = None
    ):
        if compensation_error is not None:
            message = f"{message} (cleanup also failed: {compensation_error})"
        super().__init__(message)
        self.compensation_error = compensation_error


class DerivationError(RouteBaseError):
    """Parser, geometry or timing derivation failed."""


class InsufficientPointsError(DerivationError):
    """Fewer than two valid points; no line can be formed."""
