"""Invite services."""

from rndvx.services.invites.invite_service import InviteService

__all__ = ["InviteService"]
