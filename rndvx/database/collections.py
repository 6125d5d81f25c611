"""
rndvx collection names and index setup.

The unique indexes here are the only concurrency guards in the system:
concurrent writes to the same (meeting, user) RSVP, (group, user) membership,
invite token or user email collapse at the store level.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)


USERS = "users"
GROUPS = "groups"
GROUP_MEMBERS = "groupmembers"
MEETINGS = "meetings"
RSVPS = "rsvps"
INVITES = "invites"
LOCATION_VOTES = "locationvotes"


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the indexes every collection relies on. Safe to run repeatedly."""
    await db[USERS].create_index("email", unique=True)

    await db[GROUP_MEMBERS].create_index(
        [("groupId", ASCENDING), ("userId", ASCENDING)], unique=True
    )
    await db[GROUP_MEMBERS].create_index("userId")

    await db[MEETINGS].create_index("organizerId")
    await db[MEETINGS].create_index(
        [("parentMeetingId", ASCENDING), ("dateTime", DESCENDING)]
    )
    await db[MEETINGS].create_index([("status", ASCENDING), ("dateTime", ASCENDING)])

    await db[RSVPS].create_index(
        [("meetingId", ASCENDING), ("userId", ASCENDING)], unique=True
    )
    await db[RSVPS].create_index("userId")

    await db[INVITES].create_index("token", unique=True)
    await db[INVITES].create_index("senderId")
    await db[INVITES].create_index("inviteeId")
    await db[INVITES].create_index([("meetingId", ASCENDING), ("inviteeId", ASCENDING)])

    await db[LOCATION_VOTES].create_index("meetingId")

    logger.info("Database indexes ensured")
