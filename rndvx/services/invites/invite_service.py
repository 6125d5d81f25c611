"""
Invite workflow.

Invites are addressed by an opaque token and move PENDING -> ACCEPTED or
PENDING -> DECLINED exactly once. Accepting cascades into group membership
and/or a YES RSVP for the responder.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    GoneException,
    NotFoundException,
    ValidationException,
)
from rndvx.database.collections import GROUPS, INVITES, MEETINGS, USERS
from rndvx.enums import InviteStatus, RsvpStatus
from rndvx.services.access import AccessPolicy, parse_object_id
from rndvx.services.email.notifier import describe_target
from rndvx.services.serializers import format_invite, format_user, to_iso
from rndvx.services.user.user_service import normalize_email

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InviteService:
    """
    Manages invites to groups and meetings.
    """

    TOKEN_BYTES = 32
    RESPONSES = (InviteStatus.ACCEPTED.value, InviteStatus.DECLINED.value)

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        group_service,
        rsvp_service,
        notifier=None,
        access: Optional[AccessPolicy] = None,
    ):
        """
        Initialize InviteService.

        Args:
            db: MongoDB database connection
            group_service: GroupService, for membership on acceptance
            rsvp_service: RsvpService, for the YES RSVP on acceptance
            notifier: MeetingNotifier for invitation emails
            access: Shared access checks (built from db if omitted)
        """
        self._db = db
        self._group_service = group_service
        self._rsvp_service = rsvp_service
        self._notifier = notifier
        self._access = access or AccessPolicy(db)
        self._invites_collection = db[INVITES]
        self._users_collection = db[USERS]
        self._groups_collection = db[GROUPS]
        self._meetings_collection = db[MEETINGS]

    # =========================================================================
    # Population
    # =========================================================================

    async def _populate(self, invites: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Attach sender, group and meeting summaries."""
        if not invites:
            return []

        sender_ids = list({i["senderId"] for i in invites})
        group_ids = list({i["groupId"] for i in invites if i.get("groupId")})
        meeting_ids = list({i["meetingId"] for i in invites if i.get("meetingId")})

        senders = await self._users_collection.find(
            {"_id": {"$in": sender_ids}}, {"passwordHash": 0}
        ).to_list(length=None)
        senders_by_id = {u["_id"]: u for u in senders}

        groups_by_id = {}
        if group_ids:
            groups = await self._groups_collection.find(
                {"_id": {"$in": group_ids}}
            ).to_list(length=None)
            groups_by_id = {g["_id"]: g for g in groups}

        meetings_by_id = {}
        if meeting_ids:
            meetings = await self._meetings_collection.find(
                {"_id": {"$in": meeting_ids}}, {"title": 1, "dateTime": 1}
            ).to_list(length=None)
            meetings_by_id = {m["_id"]: m for m in meetings}

        result = []
        for invite in invites:
            data = format_invite(invite)
            data["sender"] = format_user(senders_by_id.get(invite["senderId"]))

            group = groups_by_id.get(invite.get("groupId"))
            data["group"] = {"id": str(group["_id"]), "name": group.get("name")} if group else None

            meeting = meetings_by_id.get(invite.get("meetingId"))
            data["meeting"] = (
                {
                    "id": str(meeting["_id"]),
                    "title": meeting.get("title"),
                    "dateTime": to_iso(meeting.get("dateTime")),
                }
                if meeting
                else None
            )
            result.append(data)
        return result

    async def _populate_one(self, invite: Dict[str, Any]) -> Dict[str, Any]:
        populated = await self._populate([invite])
        return populated[0]

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_invites(self, user_id: str) -> List[Dict[str, Any]]:
        """Invites the user sent or received, newest first."""
        user_oid = ObjectId(user_id)
        invites = await self._invites_collection.find({
            "$or": [{"senderId": user_oid}, {"inviteeId": user_oid}]
        }).sort("createdAt", -1).to_list(length=None)
        return await self._populate(invites)

    async def get_by_token(self, token: str) -> Dict[str, Any]:
        """
        Raises:
            NotFoundException: Unknown token
        """
        invite = await self._invites_collection.find_one({"token": token})
        if not invite:
            raise NotFoundException(message="Invite not found", code="INVITE_NOT_FOUND")
        return await self._populate_one(invite)

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_invite(
        self,
        sender_id: str,
        invitee_email: str,
        group_id: Optional[str] = None,
        meeting_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Invite someone by email to a group and/or a meeting.

        The invitee does not need an account yet; if one exists it is bound
        to the invite immediately.

        Raises:
            NotFoundException: Group or meeting not found
            ForbiddenException: Sender is not a group member, or not the
                meeting's organizer
        """
        sender_oid = ObjectId(sender_id)
        invitee_email = normalize_email(invitee_email)

        group = None
        if group_id:
            group = await self._access.get_group(group_id)
            await self._access.require_member(group["_id"], sender_oid)

        meeting = None
        if meeting_id:
            meeting = await self._access.get_meeting(meeting_id)
            self._access.require_organizer(
                meeting,
                sender_oid,
                message="Only the organizer can invite to this meeting",
            )

        invitee = await self._users_collection.find_one({"email": invitee_email}, {"_id": 1})

        now = datetime.now(timezone.utc)
        invite_doc = {
            "token": secrets.token_urlsafe(self.TOKEN_BYTES),
            "senderId": sender_oid,
            "inviteeId": invitee["_id"] if invitee else None,
            "inviteeEmail": invitee_email,
            "groupId": group["_id"] if group else None,
            "meetingId": meeting["_id"] if meeting else None,
            "status": InviteStatus.PENDING.value,
            "expiresAt": _as_utc(expires_at) if expires_at else None,
            "createdAt": now,
            "updatedAt": now,
        }

        result = await self._invites_collection.insert_one(invite_doc)
        invite_doc["_id"] = result.inserted_id

        logger.info(f"Invite {result.inserted_id} sent by {sender_id} to {invitee_email}")

        if self._notifier is not None:
            sender = await self._users_collection.find_one({"_id": sender_oid}, {"name": 1})
            sender_name = sender.get("name", "Someone") if sender else "Someone"
            self._notifier.invitation(invite_doc, sender_name, describe_target(group, meeting))

        return await self._populate_one(invite_doc)

    async def respond(self, token: str, user_id: str, status: str) -> Dict[str, Any]:
        """
        Accept or decline an invite.

        Raises:
            ValidationException: status is not ACCEPTED or DECLINED
            NotFoundException: Unknown token or unknown user
            ConflictException: Invite already answered
            GoneException: Invite expired (its status is left untouched)
            ForbiddenException: Invite was addressed to someone else
        """
        if status not in self.RESPONSES:
            raise ValidationException(
                message="status must be ACCEPTED or DECLINED",
                code="INVALID_RESPONSE"
            )

        invite = await self._invites_collection.find_one({"token": token})
        if not invite:
            raise NotFoundException(message="Invite not found", code="INVITE_NOT_FOUND")

        if invite.get("status") != InviteStatus.PENDING.value:
            raise ConflictException(
                message="Invite has already been responded to",
                code="INVITE_ALREADY_RESPONDED"
            )

        expires_at = invite.get("expiresAt")
        if expires_at and _as_utc(expires_at) < datetime.now(timezone.utc):
            raise GoneException(message="Invite has expired", code="INVITE_EXPIRED")

        user_oid = parse_object_id(user_id, "User not found", "USER_NOT_FOUND")
        user = await self._users_collection.find_one({"_id": user_oid})
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        email_matches = normalize_email(user.get("email", "")) == invite.get("inviteeEmail")
        if not email_matches and invite.get("inviteeId") != user_oid:
            raise ForbiddenException(
                message="This invite was not sent to you",
                code="NOT_INVITEE"
            )

        # Only one responder can move the invite out of PENDING
        updated = await self._invites_collection.find_one_and_update(
            {"_id": invite["_id"], "status": InviteStatus.PENDING.value},
            {
                "$set": {
                    "status": status,
                    "inviteeId": user_oid,
                    "updatedAt": datetime.now(timezone.utc),
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise ConflictException(
                message="Invite has already been responded to",
                code="INVITE_ALREADY_RESPONDED"
            )

        logger.info(f"Invite {invite['_id']} {status.lower()} by user {user_id}")

        if status == InviteStatus.ACCEPTED.value:
            if invite.get("groupId"):
                await self._group_service.ensure_member(invite["groupId"], user_oid)
            if invite.get("meetingId"):
                # Recorded directly: acceptance does not re-evaluate quorum
                await self._rsvp_service.write(
                    invite["meetingId"], user_oid, RsvpStatus.YES.value
                )

        return await self._populate_one(updated)

    async def delete_invite(self, invite_id: str, user_id: str) -> None:
        """
        Raises:
            NotFoundException: Invite not found
            ForbiddenException: Caller is not the sender
        """
        invite_oid = parse_object_id(invite_id, "Invite not found", "INVITE_NOT_FOUND")
        invite = await self._invites_collection.find_one({"_id": invite_oid})
        if not invite:
            raise NotFoundException(message="Invite not found", code="INVITE_NOT_FOUND")

        if invite["senderId"] != ObjectId(user_id):
            raise ForbiddenException(
                message="Only the sender can delete this invite",
                code="NOT_SENDER"
            )

        await self._invites_collection.delete_one({"_id": invite_oid})
        logger.info(f"Invite {invite_id} deleted by {user_id}")
