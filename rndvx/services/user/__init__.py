"""User services."""

from rndvx.services.user.user_service import UserService

__all__ = ["UserService"]
