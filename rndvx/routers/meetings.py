"""
FastAPI router for meetings and everything hanging off a meeting:
RSVPs, recurring instances and location votes.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Response

from common.utils import success_response
from rndvx.dependencies import (
    require_auth,
    get_meeting_service,
    get_rsvp_service,
    get_recurrence_service,
    get_location_vote_service,
)
from rndvx.schemas.meetings import (
    CreateMeetingRequest,
    UpdateMeetingRequest,
    RsvpRequest,
    GenerateInstancesRequest,
    LocationVoteRequest,
)
from rndvx.services.meetings import RecurrenceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings", tags=["meetings"])


# =============================================================================
# Meetings
# =============================================================================

@router.get("")
async def list_meetings(user_id: Annotated[str, Depends(require_auth)]):
    """Meetings the user organizes or has responded to."""
    meetings = await get_meeting_service().list_meetings(user_id)
    return success_response({"meetings": meetings})


@router.get("/{meeting_id}")
async def get_meeting(
    meeting_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Get a single meeting."""
    meeting = await get_meeting_service().get_meeting(meeting_id)
    return success_response({"meeting": meeting})


@router.post("", status_code=201)
async def create_meeting(
    body: CreateMeetingRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Create a meeting in DRAFT status."""
    meeting = await get_meeting_service().create_meeting(
        user_id, body.model_dump(exclude_unset=True)
    )
    return success_response({"meeting": meeting})


@router.put("/{meeting_id}")
async def update_meeting(
    meeting_id: str,
    body: UpdateMeetingRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Update a meeting (organizer only)."""
    meeting = await get_meeting_service().update_meeting(
        meeting_id, user_id, body.model_dump(exclude_unset=True)
    )
    return success_response({"meeting": meeting})


@router.delete("/{meeting_id}", status_code=204)
async def delete_meeting(
    meeting_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Delete a meeting (organizer only)."""
    await get_meeting_service().delete_meeting(meeting_id, user_id)
    return Response(status_code=204)


# =============================================================================
# RSVPs
# =============================================================================

@router.put("/{meeting_id}/rsvps")
async def upsert_rsvp(
    meeting_id: str,
    body: RsvpRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Record or change the caller's RSVP."""
    rsvp = await get_rsvp_service().upsert_rsvp(meeting_id, user_id, body.status)
    return success_response({"rsvp": rsvp})


@router.get("/{meeting_id}/rsvps")
async def list_rsvps(
    meeting_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """All RSVPs for a meeting."""
    rsvps = await get_rsvp_service().list_rsvps(meeting_id, user_id)
    return success_response({"rsvps": rsvps})


@router.delete("/{meeting_id}/rsvps", status_code=204)
async def delete_rsvp(
    meeting_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Withdraw the caller's RSVP."""
    await get_rsvp_service().delete_rsvp(meeting_id, user_id)
    return Response(status_code=204)


# =============================================================================
# Recurrence
# =============================================================================

@router.post("/{meeting_id}/recurrence", status_code=201)
async def generate_instances(
    meeting_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    body: Optional[GenerateInstancesRequest] = None,
):
    """Extend a recurring meeting's series."""
    count = body.count if body else RecurrenceService.DEFAULT_COUNT
    instances = await get_recurrence_service().generate_instances(
        meeting_id, user_id, count=count
    )
    return success_response({"instances": instances})


# =============================================================================
# Location votes
# =============================================================================

@router.get("/{meeting_id}/location-votes")
async def list_location_votes(
    meeting_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Votes and per-place tally for a meeting."""
    result = await get_location_vote_service().list_votes(meeting_id, user_id)
    return success_response(result)


@router.post("/{meeting_id}/location-votes", status_code=201)
async def cast_location_vote(
    meeting_id: str,
    body: LocationVoteRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Vote for a place to hold the meeting."""
    vote = await get_location_vote_service().cast_vote(
        meeting_id, user_id, body.model_dump()
    )
    return success_response({"vote": vote})


@router.delete("/{meeting_id}/location-votes/{vote_id}", status_code=204)
async def remove_location_vote(
    meeting_id: str,
    vote_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Withdraw one of the caller's votes."""
    await get_location_vote_service().remove_vote(meeting_id, vote_id, user_id)
    return Response(status_code=204)
