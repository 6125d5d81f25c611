"""
Quorum engine.

Derives a meeting's status from its YES RSVP count. Runs in the same request
as every RSVP write so callers observe the new status immediately.

    yes >= quorumThreshold and status != CONFIRMED  ->  CONFIRMED (+ notify YES holders)
    yes <  quorumThreshold and status == CONFIRMED  ->  PENDING_QUORUM
    anything else                                   ->  unchanged

CANCELLED meetings are never touched. DRAFT is never re-entered: a DRAFT
meeting below quorum stays DRAFT until the first time quorum is met.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from rndvx.database.collections import MEETINGS, RSVPS
from rndvx.enums import MeetingStatus, RsvpStatus

logger = logging.getLogger(__name__)


class QuorumEngine:
    """Recomputes meeting status from RSVP counts."""

    def __init__(self, db: AsyncIOMotorDatabase, notifier=None):
        """
        Args:
            db: MongoDB database connection
            notifier: MeetingNotifier for confirmation emails (optional)
        """
        self._meetings_collection = db[MEETINGS]
        self._rsvps_collection = db[RSVPS]
        self._notifier = notifier

    async def recheck(self, meeting_id: ObjectId) -> Optional[str]:
        """
        Re-evaluate quorum for one meeting.

        Returns:
            The meeting status after the check, or None if the meeting is
            missing or cancelled.
        """
        meeting = await self._meetings_collection.find_one({"_id": meeting_id})
        if not meeting or meeting.get("status") == MeetingStatus.CANCELLED.value:
            return None

        yes_count = await self._rsvps_collection.count_documents(
            {"meetingId": meeting_id, "status": RsvpStatus.YES.value}
        )
        threshold = meeting.get("quorumThreshold", 1)
        should_confirm = yes_count >= threshold
        status = meeting.get("status")

        if should_confirm and status != MeetingStatus.CONFIRMED.value:
            if not await self._set_status(meeting_id, MeetingStatus.CONFIRMED):
                return None
            logger.info(
                f"Meeting {meeting_id} confirmed ({yes_count}/{threshold} yes, was {status})"
            )
            await self._notify_confirmed(meeting)
            return MeetingStatus.CONFIRMED.value

        if not should_confirm and status == MeetingStatus.CONFIRMED.value:
            if not await self._set_status(meeting_id, MeetingStatus.PENDING_QUORUM):
                return None
            logger.info(
                f"Meeting {meeting_id} lost quorum ({yes_count}/{threshold} yes)"
            )
            return MeetingStatus.PENDING_QUORUM.value

        return status

    async def _set_status(self, meeting_id: ObjectId, status: MeetingStatus) -> bool:
        # A concurrent cancel wins over a quorum transition
        result = await self._meetings_collection.update_one(
            {"_id": meeting_id, "status": {"$ne": MeetingStatus.CANCELLED.value}},
            {"$set": {"status": status.value, "updatedAt": datetime.now(timezone.utc)}}
        )
        return result.matched_count > 0

    async def _notify_confirmed(self, meeting: dict) -> None:
        if self._notifier is None:
            return
        yes_rsvps = await self._rsvps_collection.find(
            {"meetingId": meeting["_id"], "status": RsvpStatus.YES.value},
            {"userId": 1},
        ).to_list(length=None)
        self._notifier.meeting_confirmed(meeting, [r["userId"] for r in yes_rsvps])
