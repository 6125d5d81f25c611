"""
Utilities module - Common helpers for API responses and domain exceptions.
"""

from common.utils.responses import success_response, error_response
from common.utils.exceptions import (
    ErrorKind,
    status_for,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    GoneException,
    ValidationException,
    ServerException,
    InternalServerException,
)

__all__ = [
    "success_response",
    "error_response",
    "ErrorKind",
    "status_for",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "GoneException",
    "ValidationException",
    "ServerException",
    "InternalServerException",
]
