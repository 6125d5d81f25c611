"""
Document-to-response formatting shared by the services.

Stored documents use ObjectId and datetime values; API payloads use string
ids and ISO-8601 timestamps.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional


def to_iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def to_id(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def format_user(user: Optional[Dict[str, Any]], with_email: bool = True) -> Optional[Dict[str, Any]]:
    """Public projection of a user. Never includes the password hash."""
    if not user:
        return None
    data = {"id": str(user["_id"]), "name": user.get("name", "")}
    if with_email:
        data["email"] = user.get("email", "")
    return data


def format_profile(user: Dict[str, Any]) -> Dict[str, Any]:
    data = format_user(user)
    data["createdAt"] = to_iso(user.get("createdAt"))
    data["updatedAt"] = to_iso(user.get("updatedAt"))
    return data


def format_rsvp(
    rsvp: Dict[str, Any],
    users_by_id: Optional[Dict[Any, Dict[str, Any]]] = None,
    with_email: bool = False,
) -> Dict[str, Any]:
    """
    Format an RSVP. When a user lookup is given the payload always carries
    a `user` key, null if the user no longer exists.
    """
    data = {
        "id": to_id(rsvp.get("_id")),
        "meetingId": to_id(rsvp.get("meetingId")),
        "userId": to_id(rsvp.get("userId")),
        "status": rsvp.get("status"),
        "createdAt": to_iso(rsvp.get("createdAt")),
        "updatedAt": to_iso(rsvp.get("updatedAt")),
    }
    if users_by_id is not None:
        data["user"] = format_user(users_by_id.get(rsvp.get("userId")), with_email=with_email)
    return data


def format_meeting(
    meeting: Dict[str, Any],
    organizer: Optional[Dict[str, Any]] = None,
    rsvps: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Format a meeting with optional organizer and RSVP projections."""
    return {
        "id": str(meeting["_id"]),
        "title": meeting.get("title"),
        "description": meeting.get("description"),
        "organizerId": to_id(meeting.get("organizerId")),
        "groupId": to_id(meeting.get("groupId")),
        "dateTime": to_iso(meeting.get("dateTime")),
        "durationMinutes": meeting.get("durationMinutes"),
        "quorumThreshold": meeting.get("quorumThreshold"),
        "recurrence": meeting.get("recurrence"),
        "status": meeting.get("status"),
        "locationName": meeting.get("locationName"),
        "locationAddress": meeting.get("locationAddress"),
        "locationPlaceId": meeting.get("locationPlaceId"),
        "locationLat": meeting.get("locationLat"),
        "locationLng": meeting.get("locationLng"),
        "parentMeetingId": to_id(meeting.get("parentMeetingId")),
        "reminderSentAt": to_iso(meeting.get("reminderSentAt")),
        "createdAt": to_iso(meeting.get("createdAt")),
        "updatedAt": to_iso(meeting.get("updatedAt")),
        "organizer": format_user(organizer),
        "rsvps": rsvps if rsvps is not None else [],
    }


def format_invite(invite: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(invite["_id"]),
        "token": invite.get("token"),
        "senderId": to_id(invite.get("senderId")),
        "inviteeId": to_id(invite.get("inviteeId")),
        "inviteeEmail": invite.get("inviteeEmail"),
        "groupId": to_id(invite.get("groupId")),
        "meetingId": to_id(invite.get("meetingId")),
        "status": invite.get("status"),
        "expiresAt": to_iso(invite.get("expiresAt")),
        "createdAt": to_iso(invite.get("createdAt")),
        "updatedAt": to_iso(invite.get("updatedAt")),
    }


def format_member(
    membership: Dict[str, Any],
    user: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    data = {
        "groupId": to_id(membership.get("groupId")),
        "userId": to_id(membership.get("userId")),
        "role": membership.get("role"),
        "joinedAt": to_iso(membership.get("createdAt")),
    }
    if user is not None:
        data["user"] = format_user(user)
    return data


def format_group(
    group: Dict[str, Any],
    members: Optional[Iterable[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    return {
        "id": str(group["_id"]),
        "name": group.get("name"),
        "ownerId": to_id(group.get("ownerId")),
        "createdAt": to_iso(group.get("createdAt")),
        "updatedAt": to_iso(group.get("updatedAt")),
        "members": list(members) if members is not None else [],
    }


def format_vote(vote: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(vote["_id"]),
        "meetingId": to_id(vote.get("meetingId")),
        "userId": to_id(vote.get("userId")),
        "placeId": vote.get("placeId"),
        "name": vote.get("name"),
        "address": vote.get("address"),
        "lat": vote.get("lat"),
        "lng": vote.get("lng"),
        "createdAt": to_iso(vote.get("createdAt")),
    }
