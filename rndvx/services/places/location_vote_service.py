"""
Location votes.

Votes are an append log per meeting; the tally groups them by placeId.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import ForbiddenException, NotFoundException
from rndvx.database.collections import LOCATION_VOTES
from rndvx.services.access import AccessPolicy, parse_object_id
from rndvx.services.serializers import format_vote

logger = logging.getLogger(__name__)


def tally_votes(votes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Count votes per placeId, most votes first. Ties keep the order in which
    each place first received a vote.
    """
    tally: Dict[str, Dict[str, Any]] = {}
    for vote in votes:
        entry = tally.get(vote["placeId"])
        if entry is None:
            entry = tally[vote["placeId"]] = {
                "placeId": vote["placeId"],
                "name": vote.get("name"),
                "address": vote.get("address"),
                "lat": vote.get("lat"),
                "lng": vote.get("lng"),
                "count": 0,
            }
        entry["count"] += 1
    return sorted(tally.values(), key=lambda e: e["count"], reverse=True)


class LocationVoteService:
    """
    Records and tallies where participants want to meet.
    """

    def __init__(self, db: AsyncIOMotorDatabase, access: Optional[AccessPolicy] = None):
        """
        Initialize LocationVoteService.

        Args:
            db: MongoDB database connection
            access: Shared access checks (built from db if omitted)
        """
        self._db = db
        self._access = access or AccessPolicy(db)
        self._votes_collection = db[LOCATION_VOTES]

    async def _votes_for(self, meeting_id: ObjectId) -> List[Dict[str, Any]]:
        return await self._votes_collection.find(
            {"meetingId": meeting_id}
        ).sort("createdAt", 1).to_list(length=None)

    async def cast_vote(
        self,
        meeting_id: str,
        user_id: str,
        place: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Record a vote for a place.

        Raises:
            NotFoundException: Meeting not found
            ForbiddenException: Caller is not a participant
        """
        meeting = await self._access.get_meeting(meeting_id)
        user_oid = ObjectId(user_id)
        await self._access.require_participant(meeting, user_oid)

        vote_doc = {
            "meetingId": meeting["_id"],
            "userId": user_oid,
            "placeId": place["placeId"],
            "name": place["name"],
            "address": place["address"],
            "lat": place.get("lat"),
            "lng": place.get("lng"),
            "createdAt": datetime.now(timezone.utc),
        }
        result = await self._votes_collection.insert_one(vote_doc)
        vote_doc["_id"] = result.inserted_id

        logger.info(f"User {user_id} voted for {place['placeId']} on meeting {meeting_id}")
        return format_vote(vote_doc)

    async def list_votes(self, meeting_id: str, user_id: str) -> Dict[str, Any]:
        """
        All votes for a meeting plus the per-place tally.

        Raises:
            NotFoundException: Meeting not found
            ForbiddenException: Caller is not a participant
        """
        meeting = await self._access.get_meeting(meeting_id)
        await self._access.require_participant(meeting, ObjectId(user_id))

        votes = await self._votes_for(meeting["_id"])
        return {
            "votes": [format_vote(v) for v in votes],
            "tally": tally_votes(votes),
        }

    async def tally_for_meeting(self, meeting_id: str) -> List[Dict[str, Any]]:
        """Tally without access checks. Raises NotFound for unknown meetings."""
        meeting = await self._access.get_meeting(meeting_id)
        votes = await self._votes_for(meeting["_id"])
        return tally_votes(votes)

    async def remove_vote(self, meeting_id: str, vote_id: str, user_id: str) -> None:
        """
        Withdraw one of the caller's own votes.

        Raises:
            NotFoundException: Vote not found for this meeting
            ForbiddenException: Vote belongs to someone else
        """
        meeting_oid = parse_object_id(meeting_id, "Vote not found", "VOTE_NOT_FOUND")
        vote_oid = parse_object_id(vote_id, "Vote not found", "VOTE_NOT_FOUND")

        vote = await self._votes_collection.find_one({"_id": vote_oid, "meetingId": meeting_oid})
        if not vote:
            raise NotFoundException(message="Vote not found", code="VOTE_NOT_FOUND")

        if vote["userId"] != ObjectId(user_id):
            raise ForbiddenException(
                message="You can only remove your own vote",
                code="NOT_VOTER"
            )

        await self._votes_collection.delete_one({"_id": vote_oid})
        logger.info(f"Vote {vote_id} removed by {user_id}")
