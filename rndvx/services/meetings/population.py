"""Attach organizer and RSVP projections to meeting documents."""

from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorCollection

from rndvx.services.serializers import format_meeting, format_rsvp


async def populate_meetings(
    rsvps_collection: AsyncIOMotorCollection,
    users_collection: AsyncIOMotorCollection,
    meetings: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Format meetings with organizer {id, name, email} and RSVPs carrying
    user {id, name}. Uses two batched queries regardless of list size.
    """
    if not meetings:
        return []

    meeting_ids = [m["_id"] for m in meetings]
    rsvps = await rsvps_collection.find(
        {"meetingId": {"$in": meeting_ids}}
    ).sort("createdAt", 1).to_list(length=None)

    user_ids = {m["organizerId"] for m in meetings}
    user_ids.update(r["userId"] for r in rsvps)
    users = await users_collection.find(
        {"_id": {"$in": list(user_ids)}}, {"passwordHash": 0}
    ).to_list(length=None)
    users_by_id = {u["_id"]: u for u in users}

    rsvps_by_meeting: Dict[Any, List[Dict[str, Any]]] = {}
    for r in rsvps:
        rsvps_by_meeting.setdefault(r["meetingId"], []).append(
            format_rsvp(r, users_by_id)
        )

    return [
        format_meeting(
            m,
            organizer=users_by_id.get(m["organizerId"]),
            rsvps=rsvps_by_meeting.get(m["_id"], []),
        )
        for m in meetings
    ]
