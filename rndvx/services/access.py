"""
Shared access checks for meetings and groups.

Every check raises a domain exception instead of returning a flag, so
services can call them as guard statements.
"""

from typing import Any, Dict, Iterable, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import NotFoundException, ForbiddenException
from rndvx.database.collections import (
    GROUPS,
    GROUP_MEMBERS,
    INVITES,
    MEETINGS,
    RSVPS,
)
from rndvx.enums import GroupRole


def parse_object_id(
    value: Any,
    message: str = "Resource not found",
    code: str = "NOT_FOUND",
) -> ObjectId:
    """Convert a path or token id to an ObjectId, treating malformed ids as missing."""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(str(value)):
        raise NotFoundException(message=message, code=code)
    return ObjectId(str(value))


class AccessPolicy:
    """Looks up meetings and groups and enforces who may act on them."""

    MANAGER_ROLES = (GroupRole.OWNER.value, GroupRole.ADMIN.value)

    def __init__(self, db: AsyncIOMotorDatabase):
        self._meetings_collection = db[MEETINGS]
        self._rsvps_collection = db[RSVPS]
        self._invites_collection = db[INVITES]
        self._groups_collection = db[GROUPS]
        self._members_collection = db[GROUP_MEMBERS]

    # -------------------------------------------------------------------------
    # Meetings
    # -------------------------------------------------------------------------

    async def get_meeting(self, meeting_id: Any) -> Dict[str, Any]:
        """Load a meeting or raise NotFound."""
        meeting_oid = parse_object_id(meeting_id, "Meeting not found", "MEETING_NOT_FOUND")
        meeting = await self._meetings_collection.find_one({"_id": meeting_oid})
        if not meeting:
            raise NotFoundException(message="Meeting not found", code="MEETING_NOT_FOUND")
        return meeting

    @staticmethod
    def is_organizer(meeting: Dict[str, Any], user_id: ObjectId) -> bool:
        return meeting.get("organizerId") == user_id

    def require_organizer(
        self,
        meeting: Dict[str, Any],
        user_id: ObjectId,
        message: str = "Only the organizer can do this",
    ) -> None:
        if not self.is_organizer(meeting, user_id):
            raise ForbiddenException(message=message, code="NOT_ORGANIZER")

    async def is_participant(self, meeting: Dict[str, Any], user_id: ObjectId) -> bool:
        """Organizer, RSVP holder, or the bound invitee of a meeting invite."""
        if self.is_organizer(meeting, user_id):
            return True

        rsvp = await self._rsvps_collection.find_one(
            {"meetingId": meeting["_id"], "userId": user_id}
        )
        if rsvp:
            return True

        invite = await self._invites_collection.find_one(
            {"meetingId": meeting["_id"], "inviteeId": user_id}
        )
        return invite is not None

    async def require_participant(
        self,
        meeting: Dict[str, Any],
        user_id: ObjectId,
        message: str = "You do not have access to this meeting",
    ) -> None:
        if not await self.is_participant(meeting, user_id):
            raise ForbiddenException(message=message, code="NOT_PARTICIPANT")

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    async def get_group(self, group_id: Any) -> Dict[str, Any]:
        """Load a group or raise NotFound."""
        group_oid = parse_object_id(group_id, "Group not found", "GROUP_NOT_FOUND")
        group = await self._groups_collection.find_one({"_id": group_oid})
        if not group:
            raise NotFoundException(message="Group not found", code="GROUP_NOT_FOUND")
        return group

    async def get_membership(
        self,
        group_id: ObjectId,
        user_id: ObjectId,
    ) -> Optional[Dict[str, Any]]:
        return await self._members_collection.find_one(
            {"groupId": group_id, "userId": user_id}
        )

    async def require_member(
        self,
        group_id: ObjectId,
        user_id: ObjectId,
        message: str = "You are not a member of this group",
    ) -> Dict[str, Any]:
        membership = await self.get_membership(group_id, user_id)
        if not membership:
            raise ForbiddenException(message=message, code="NOT_GROUP_MEMBER")
        return membership

    async def require_role(
        self,
        group_id: ObjectId,
        user_id: ObjectId,
        roles: Iterable[str] = MANAGER_ROLES,
        message: str = "Insufficient permissions",
    ) -> Dict[str, Any]:
        membership = await self.get_membership(group_id, user_id)
        if not membership or membership.get("role") not in tuple(roles):
            raise ForbiddenException(message=message, code="INSUFFICIENT_ROLE")
        return membership
