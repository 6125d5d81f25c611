"""Group services."""

from rndvx.services.groups.group_service import GroupService

__all__ = ["GroupService"]
