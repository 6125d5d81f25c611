"""
Meeting management service.

Owns meeting CRUD. Status changes other than cancellation belong to the
quorum engine.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import NotFoundException, ValidationException
from rndvx.database.collections import LOCATION_VOTES, MEETINGS, RSVPS, USERS
from rndvx.enums import MeetingStatus, RecurrenceRule
from rndvx.services.access import AccessPolicy
from rndvx.services.meetings.population import populate_meetings
from rndvx.services.meetings.quorum import QuorumEngine

logger = logging.getLogger(__name__)


EDITABLE_FIELDS = (
    "title",
    "description",
    "dateTime",
    "durationMinutes",
    "quorumThreshold",
    "recurrence",
    "locationName",
    "locationAddress",
    "locationPlaceId",
    "locationLat",
    "locationLng",
)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MeetingService:
    """
    Manages meetings.
    """

    DEFAULT_DURATION = 60
    DEFAULT_QUORUM = 3

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        quorum_engine: Optional[QuorumEngine] = None,
        notifier=None,
        access: Optional[AccessPolicy] = None,
        default_duration: int = DEFAULT_DURATION,
        default_quorum: int = DEFAULT_QUORUM,
    ):
        """
        Initialize MeetingService.

        Args:
            db: MongoDB database connection
            quorum_engine: Rechecks status when the threshold changes
            notifier: MeetingNotifier for created/cancelled emails
            access: Shared access checks (built from db if omitted)
            default_duration: Minutes used when a meeting omits durationMinutes
            default_quorum: Threshold used when a meeting omits quorumThreshold
        """
        self._db = db
        self._quorum = quorum_engine
        self._notifier = notifier
        self._access = access or AccessPolicy(db)
        self._default_duration = default_duration
        self._default_quorum = default_quorum
        self._meetings_collection = db[MEETINGS]
        self._rsvps_collection = db[RSVPS]
        self._users_collection = db[USERS]
        self._votes_collection = db[LOCATION_VOTES]

    async def _populate(self, meetings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return await populate_meetings(self._rsvps_collection, self._users_collection, meetings)

    async def _populate_one(self, meeting: Dict[str, Any]) -> Dict[str, Any]:
        populated = await self._populate([meeting])
        return populated[0]

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_meetings(self, user_id: str) -> List[Dict[str, Any]]:
        """Meetings the user organizes or has responded to, soonest first."""
        user_oid = ObjectId(user_id)
        own_rsvps = await self._rsvps_collection.find(
            {"userId": user_oid}, {"meetingId": 1}
        ).to_list(length=None)
        rsvp_meeting_ids = [r["meetingId"] for r in own_rsvps]

        meetings = await self._meetings_collection.find({
            "$or": [
                {"organizerId": user_oid},
                {"_id": {"$in": rsvp_meeting_ids}},
            ]
        }).sort("dateTime", 1).to_list(length=None)

        return await self._populate(meetings)

    async def get_meeting(self, meeting_id: str) -> Dict[str, Any]:
        """
        Get a meeting by id.

        Raises:
            NotFoundException: Meeting not found
        """
        meeting = await self._access.get_meeting(meeting_id)
        return await self._populate_one(meeting)

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_meeting(self, organizer_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a DRAFT meeting.

        Args:
            organizer_id: Creating user
            data: Meeting fields; groupId, if present, must name a group the
                organizer belongs to

        Raises:
            NotFoundException: Organizer or group not found
            ForbiddenException: Organizer is not a member of the group
        """
        organizer_oid = ObjectId(organizer_id)
        organizer = await self._users_collection.find_one({"_id": organizer_oid})
        if not organizer:
            raise NotFoundException(message="Organizer not found", code="USER_NOT_FOUND")

        group_oid = None
        if data.get("groupId"):
            group = await self._access.get_group(data["groupId"])
            await self._access.require_member(
                group["_id"],
                organizer_oid,
                message="You can only create meetings in groups you belong to",
            )
            group_oid = group["_id"]

        now = datetime.now(timezone.utc)
        meeting_doc = {
            "title": data["title"],
            "description": data.get("description"),
            "organizerId": organizer_oid,
            "groupId": group_oid,
            "dateTime": _as_utc(data["dateTime"]),
            "durationMinutes": data.get("durationMinutes") or self._default_duration,
            "quorumThreshold": data.get("quorumThreshold") or self._default_quorum,
            "recurrence": data.get("recurrence") or RecurrenceRule.NONE.value,
            "status": MeetingStatus.DRAFT.value,
            "locationName": data.get("locationName"),
            "locationAddress": data.get("locationAddress"),
            "locationPlaceId": data.get("locationPlaceId"),
            "locationLat": data.get("locationLat"),
            "locationLng": data.get("locationLng"),
            "parentMeetingId": None,
            "reminderSentAt": None,
            "createdAt": now,
            "updatedAt": now,
        }

        result = await self._meetings_collection.insert_one(meeting_doc)
        meeting_doc["_id"] = result.inserted_id

        logger.info(f"Meeting {result.inserted_id} created by {organizer_id}")

        if self._notifier is not None:
            self._notifier.meeting_created(meeting_doc)

        return await self._populate_one(meeting_doc)

    async def update_meeting(
        self,
        meeting_id: str,
        user_id: str,
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Update meeting fields. Organizer only.

        The only status an organizer may set is CANCELLED; every other status
        is owned by the quorum engine.

        Raises:
            NotFoundException: Meeting not found
            ForbiddenException: Caller is not the organizer
            ValidationException: Disallowed status change
        """
        meeting = await self._access.get_meeting(meeting_id)
        self._access.require_organizer(
            meeting,
            ObjectId(user_id),
            message="Only the organizer can update this meeting",
        )

        status = data.get("status")
        if status is not None and status != MeetingStatus.CANCELLED.value:
            raise ValidationException(
                message="Status can only be changed to CANCELLED",
                code="INVALID_STATUS_TRANSITION"
            )

        updates = {k: data[k] for k in EDITABLE_FIELDS if k in data}
        if updates.get("dateTime") is not None:
            updates["dateTime"] = _as_utc(updates["dateTime"])
            if updates["dateTime"] != meeting.get("dateTime"):
                # New start time means the reminder has to go out again
                updates["reminderSentAt"] = None
        if status is not None:
            updates["status"] = status

        threshold_changed = (
            "quorumThreshold" in updates
            and updates["quorumThreshold"] != meeting.get("quorumThreshold")
        )

        updates["updatedAt"] = datetime.now(timezone.utc)
        await self._meetings_collection.update_one(
            {"_id": meeting["_id"]},
            {"$set": updates}
        )
        meeting.update(updates)

        if status == MeetingStatus.CANCELLED.value:
            logger.info(f"Meeting {meeting_id} cancelled by organizer")
        elif threshold_changed and self._quorum is not None:
            new_status = await self._quorum.recheck(meeting["_id"])
            if new_status:
                meeting["status"] = new_status

        return await self._populate_one(meeting)

    async def delete_meeting(self, meeting_id: str, user_id: str) -> None:
        """
        Delete a meeting with its RSVPs and location votes. Organizer only.

        RSVP holders are notified before the RSVPs are removed.

        Raises:
            NotFoundException: Meeting not found
            ForbiddenException: Caller is not the organizer
        """
        meeting = await self._access.get_meeting(meeting_id)
        self._access.require_organizer(
            meeting,
            ObjectId(user_id),
            message="Only the organizer can delete this meeting",
        )

        rsvps = await self._rsvps_collection.find(
            {"meetingId": meeting["_id"]}, {"userId": 1}
        ).to_list(length=None)
        if self._notifier is not None and rsvps:
            self._notifier.meeting_cancelled(meeting, [r["userId"] for r in rsvps])

        await self._rsvps_collection.delete_many({"meetingId": meeting["_id"]})
        await self._votes_collection.delete_many({"meetingId": meeting["_id"]})
        await self._meetings_collection.delete_one({"_id": meeting["_id"]})

        logger.info(f"Meeting {meeting_id} deleted by {user_id} ({len(rsvps)} RSVPs removed)")
