"""
Domain exceptions with error kinds.

Services raise these without knowing about HTTP. The API boundary maps each
ErrorKind to a status code (see ``status_for``) in a single exception handler.

Example:
    from common.utils import NotFoundException

    async def get_meeting(meeting_id: str):
        meeting = await meetings.find_one({"_id": ObjectId(meeting_id)})
        if not meeting:
            raise NotFoundException("Meeting not found", code="MEETING_NOT_FOUND")
        return meeting
"""

from enum import Enum
from typing import Optional, Any, Dict


class ErrorKind(str, Enum):
    """Category of a domain error."""

    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    GONE = "GONE"
    VALIDATION = "VALIDATION"
    UNAUTHORIZED = "UNAUTHORIZED"
    INTERNAL = "INTERNAL"


_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.GONE: 410,
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.INTERNAL: 500,
}


def status_for(kind: ErrorKind) -> int:
    """Map an error kind to its HTTP status code."""
    return _STATUS_BY_KIND[kind]


class APIException(Exception):
    """
    Base domain exception.

    Carries an error kind, a human-readable message and a machine-readable
    code. Transport status is derived from the kind at the boundary.
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = "Internal server error"
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        """
        Create a domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return status_for(self.kind)

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
            "code": self.code,
        }
        if self.details is not None:
            error["details"] = self.details
        return error


class UnauthorizedException(APIException):
    """Missing or invalid authentication."""

    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"
    default_code = "UNAUTHORIZED"


class ForbiddenException(APIException):
    """Authenticated but lacking the required relationship."""

    kind = ErrorKind.FORBIDDEN
    default_message = "Forbidden"
    default_code = "FORBIDDEN"


class NotFoundException(APIException):
    """Referenced resource doesn't exist."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"
    default_code = "NOT_FOUND"


class ConflictException(APIException):
    """Resource already exists or is in a conflicting state."""

    kind = ErrorKind.CONFLICT
    default_message = "Conflict"
    default_code = "CONFLICT"


class GoneException(APIException):
    """Resource is no longer actionable (e.g. an expired invite)."""

    kind = ErrorKind.GONE
    default_message = "Gone"
    default_code = "GONE"


class ValidationException(APIException):
    """Malformed input or an illegal domain transition."""

    kind = ErrorKind.VALIDATION
    default_message = "Validation error"
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        errors: Optional[list] = None,
    ):
        detail_info = details
        if errors:
            detail_info = {"errors": errors, **(details or {})}
        super().__init__(message, code, detail_info)


class InternalServerException(APIException):
    """Unexpected server error."""

    kind = ErrorKind.INTERNAL


# Alias for InternalServerException
ServerException = InternalServerException
