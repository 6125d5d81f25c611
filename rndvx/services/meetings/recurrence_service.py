"""
Recurring meeting generation.

Instances are ordinary DRAFT meetings that point back at their parent via
parentMeetingId. Each batch continues strictly after the latest existing
instance, so repeated calls extend the series without duplicates. Dates are
always offsets from the parent's dateTime, never from the previous instance.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from dateutil.relativedelta import relativedelta
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from common.utils.exceptions import ValidationException
from rndvx.database.collections import MEETINGS, RSVPS, USERS
from rndvx.enums import MeetingStatus, RecurrenceRule
from rndvx.services.access import AccessPolicy
from rndvx.services.meetings.population import populate_meetings

logger = logging.getLogger(__name__)


RECURRENCE_STEPS = {
    RecurrenceRule.WEEKLY.value: timedelta(days=7),
    RecurrenceRule.BIWEEKLY.value: timedelta(days=14),
    # relativedelta clamps to the last day of shorter months (Jan 31 -> Feb 28)
    RecurrenceRule.MONTHLY.value: relativedelta(months=1),
}


def _step(rule: str):
    step = RECURRENCE_STEPS.get(rule)
    if step is None:
        raise ValidationException(
            message="Meeting has no recurrence rule",
            code="NO_RECURRENCE"
        )
    return step


# Fields copied from the parent onto every generated instance
INHERITED_FIELDS = (
    "title",
    "description",
    "organizerId",
    "groupId",
    "durationMinutes",
    "quorumThreshold",
    "recurrence",
    "locationName",
    "locationAddress",
    "locationPlaceId",
    "locationLat",
    "locationLng",
)


def occurrence(start: datetime, rule: str, index: int) -> datetime:
    """
    The index-th occurrence of a series starting at `start`.

    Always measured from the series start, so a series on the 31st lands on
    the last day of each shorter month and returns to the 31st afterwards.
    """
    return start + _step(rule) * index


def next_index(start: datetime, after: datetime, rule: str) -> int:
    """Smallest index whose occurrence falls strictly after `after`."""
    step = _step(rule)
    if isinstance(step, relativedelta):
        index = (after.year - start.year) * 12 + after.month - start.month
    else:
        index = (after - start) // step
    index = max(index, 1)
    while occurrence(start, rule, index) <= after:
        index += 1
    return index


class RecurrenceService:
    """
    Generates instances of recurring meetings.
    """

    MIN_COUNT = 1
    MAX_COUNT = 52
    DEFAULT_COUNT = 4

    def __init__(self, db: AsyncIOMotorDatabase, access: Optional[AccessPolicy] = None):
        """
        Initialize RecurrenceService.

        Args:
            db: MongoDB database connection
            access: Shared access checks (built from db if omitted)
        """
        self._db = db
        self._access = access or AccessPolicy(db)
        self._meetings_collection = db[MEETINGS]
        self._rsvps_collection = db[RSVPS]
        self._users_collection = db[USERS]

    async def latest_instance(self, parent_id: ObjectId) -> Optional[Dict[str, Any]]:
        """The child with the greatest dateTime, or None."""
        return await self._meetings_collection.find_one(
            {"parentMeetingId": parent_id},
            sort=[("dateTime", DESCENDING)],
        )

    async def generate_instances(
        self,
        parent_id: str,
        requester_id: str,
        count: int = DEFAULT_COUNT,
    ) -> List[Dict[str, Any]]:
        """
        Create `count` further instances of a recurring meeting.

        Args:
            parent_id: The recurring (parent) meeting
            requester_id: Must be the parent's organizer
            count: Instances to add (1-52)

        Returns:
            Every instance of the series, ordered by dateTime

        Raises:
            ValidationException: count out of range, or parent does not recur
            NotFoundException: Parent not found
            ForbiddenException: Requester is not the organizer
        """
        if count < self.MIN_COUNT or count > self.MAX_COUNT:
            raise ValidationException(
                message=f"count must be between {self.MIN_COUNT} and {self.MAX_COUNT}",
                code="INVALID_COUNT"
            )

        parent = await self._access.get_meeting(parent_id)
        self._access.require_organizer(
            parent,
            ObjectId(requester_id),
            message="Only the organizer can generate instances",
        )

        rule = parent.get("recurrence", RecurrenceRule.NONE.value)
        if rule == RecurrenceRule.NONE.value:
            raise ValidationException(
                message="Meeting has no recurrence rule",
                code="NO_RECURRENCE"
            )

        start = parent["dateTime"]
        latest = await self.latest_instance(parent["_id"])
        first = next_index(start, latest["dateTime"] if latest else start, rule)

        now = datetime.now(timezone.utc)
        instances = []
        for index in range(first, first + count):
            anchor = occurrence(start, rule, index)
            instance = {field: parent.get(field) for field in INHERITED_FIELDS}
            instance.update({
                "dateTime": anchor,
                "status": MeetingStatus.DRAFT.value,
                "parentMeetingId": parent["_id"],
                "reminderSentAt": None,
                "createdAt": now,
                "updatedAt": now,
            })
            instances.append(instance)

        await self._meetings_collection.insert_many(instances)
        logger.info(
            f"Generated {count} {rule} instance(s) of meeting {parent['_id']} "
            f"through {anchor.isoformat()}"
        )

        children = await self._meetings_collection.find(
            {"parentMeetingId": parent["_id"]}
        ).sort("dateTime", 1).to_list(length=None)
        return await populate_meetings(self._rsvps_collection, self._users_collection, children)
