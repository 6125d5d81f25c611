"""
Pydantic models for meeting, RSVP, recurrence and location vote requests.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from rndvx.enums import MeetingStatus, RecurrenceRule, RsvpStatus


class _MeetingLocation(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    locationName: Optional[str] = Field(None, max_length=200)
    locationAddress: Optional[str] = Field(None, max_length=500)
    locationPlaceId: Optional[str] = Field(None, max_length=200)
    locationLat: Optional[float] = Field(None, ge=-90, le=90)
    locationLng: Optional[float] = Field(None, ge=-180, le=180)


class CreateMeetingRequest(_MeetingLocation):
    """Request body for creating a meeting."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    dateTime: datetime
    durationMinutes: Optional[int] = Field(None, ge=15, le=480)
    quorumThreshold: Optional[int] = Field(None, ge=1, le=100)
    recurrence: Optional[RecurrenceRule] = None
    groupId: Optional[str] = None


class UpdateMeetingRequest(_MeetingLocation):
    """Request body for updating a meeting. Only provided fields change."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    dateTime: Optional[datetime] = None
    durationMinutes: Optional[int] = Field(None, ge=15, le=480)
    quorumThreshold: Optional[int] = Field(None, ge=1, le=100)
    recurrence: Optional[RecurrenceRule] = None
    status: Optional[MeetingStatus] = None


class RsvpRequest(BaseModel):
    """Request body for recording an RSVP."""
    model_config = ConfigDict(use_enum_values=True)

    status: RsvpStatus


class GenerateInstancesRequest(BaseModel):
    """Request body for extending a recurring series."""
    count: int = 4


class LocationVoteRequest(BaseModel):
    """Request body for voting on a meeting location."""
    placeId: str = Field(..., min_length=1, max_length=200)
    name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(..., max_length=500)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
