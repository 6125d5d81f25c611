"""
Pydantic models for invite requests.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr


class CreateInviteRequest(BaseModel):
    """Request body for sending an invite."""
    inviteeEmail: EmailStr
    groupId: Optional[str] = None
    meetingId: Optional[str] = None
    expiresAt: Optional[datetime] = None


class RespondInviteRequest(BaseModel):
    """Request body for answering an invite."""
    status: Literal["ACCEPTED", "DECLINED"]
