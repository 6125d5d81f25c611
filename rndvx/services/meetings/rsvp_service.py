"""
RSVP ledger.

One RSVP per (meeting, user), enforced by a unique index. Every write runs
the quorum engine before returning.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.utils.exceptions import NotFoundException
from rndvx.database.collections import RSVPS, USERS
from rndvx.services.access import AccessPolicy, parse_object_id
from rndvx.services.meetings.quorum import QuorumEngine
from rndvx.services.serializers import format_rsvp

logger = logging.getLogger(__name__)


class RsvpService:
    """
    Records meeting responses and keeps meeting status in sync.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        quorum_engine: QuorumEngine,
        notifier=None,
        access: Optional[AccessPolicy] = None,
    ):
        """
        Initialize RsvpService.

        Args:
            db: MongoDB database connection
            quorum_engine: Recomputes status after each write
            notifier: MeetingNotifier for RSVP confirmation emails
            access: Shared access checks (built from db if omitted)
        """
        self._db = db
        self._quorum = quorum_engine
        self._notifier = notifier
        self._access = access or AccessPolicy(db)
        self._rsvps_collection = db[RSVPS]
        self._users_collection = db[USERS]

    async def upsert_rsvp(self, meeting_id: str, user_id: str, status: str) -> Dict[str, Any]:
        """
        Create or overwrite the caller's RSVP.

        Allowed for the organizer, an existing RSVP holder, or a user bound to
        an invite for this meeting.

        Raises:
            NotFoundException: Meeting not found
            ForbiddenException: Caller has no relationship to the meeting
        """
        meeting = await self._access.get_meeting(meeting_id)
        user_oid = ObjectId(user_id)
        await self._access.require_participant(meeting, user_oid, message="Access denied")

        rsvp = await self.write(meeting["_id"], user_oid, status)

        if self._notifier is not None:
            self._notifier.rsvp_confirmation(user_oid, meeting, status)

        await self._quorum.recheck(meeting["_id"])
        return format_rsvp(rsvp)

    async def write(self, meeting_id: ObjectId, user_id: ObjectId, status: str) -> Dict[str, Any]:
        """Upsert the (meeting, user) row without access checks or side effects."""
        now = datetime.now(timezone.utc)
        rsvp = await self._rsvps_collection.find_one_and_update(
            {"meetingId": meeting_id, "userId": user_id},
            {
                "$set": {"status": status, "updatedAt": now},
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logger.info(f"RSVP {status} recorded for user {user_id} on meeting {meeting_id}")
        return rsvp

    async def list_rsvps(self, meeting_id: str, requester_id: str) -> List[Dict[str, Any]]:
        """
        All RSVPs for a meeting in creation order, with user {id, name, email}.

        Raises:
            NotFoundException: Meeting not found
            ForbiddenException: Requester has no relationship to the meeting
        """
        meeting = await self._access.get_meeting(meeting_id)
        await self._access.require_participant(
            meeting, ObjectId(requester_id), message="Access denied"
        )

        rsvps = await self._rsvps_collection.find(
            {"meetingId": meeting["_id"]}
        ).sort("createdAt", 1).to_list(length=None)

        users = await self._users_collection.find(
            {"_id": {"$in": [r["userId"] for r in rsvps]}}, {"passwordHash": 0}
        ).to_list(length=None)
        users_by_id = {u["_id"]: u for u in users}

        return [
            format_rsvp(r, users_by_id, with_email=True)
            for r in rsvps
        ]

    async def delete_rsvp(self, meeting_id: str, user_id: str) -> None:
        """
        Withdraw the caller's RSVP.

        Raises:
            NotFoundException: No RSVP for this (meeting, user)
        """
        meeting_oid = parse_object_id(meeting_id, "RSVP not found", "RSVP_NOT_FOUND")
        result = await self._rsvps_collection.delete_one(
            {"meetingId": meeting_oid, "userId": ObjectId(user_id)}
        )
        if result.deleted_count == 0:
            raise NotFoundException(message="RSVP not found", code="RSVP_NOT_FOUND")

        logger.info(f"RSVP withdrawn by user {user_id} on meeting {meeting_id}")
        await self._quorum.recheck(meeting_oid)
