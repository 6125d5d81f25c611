"""
Common library for reusable infrastructure components.

- database: Async MongoDB connection (Motor)
- auth: Pluggable authentication (JWT + bcrypt)
- utils: Standard responses and domain exceptions
- config: Base settings class
"""

from common.database import MongoDB
from common.auth import AuthProvider, JWTAuth, create_auth_dependency
from common.utils import (
    success_response,
    error_response,
    ErrorKind,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    GoneException,
    ValidationException,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    # Auth
    "AuthProvider",
    "JWTAuth",
    "create_auth_dependency",
    # Utils
    "success_response",
    "error_response",
    "ErrorKind",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "GoneException",
    "ValidationException",
    # Config
    "BaseAppSettings",
]
