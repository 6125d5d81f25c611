"""Meeting services."""

from rndvx.services.meetings.quorum import QuorumEngine
from rndvx.services.meetings.meeting_service import MeetingService
from rndvx.services.meetings.rsvp_service import RsvpService
from rndvx.services.meetings.recurrence_service import RecurrenceService

__all__ = [
    "QuorumEngine",
    "MeetingService",
    "RsvpService",
    "RecurrenceService",
]
