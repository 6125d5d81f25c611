"""
Pydantic models for group requests.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field


class CreateGroupRequest(BaseModel):
    """Request body for creating a group."""
    name: str = Field(..., min_length=1, max_length=100)


class UpdateGroupRequest(BaseModel):
    """Request body for renaming a group."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class AddMemberRequest(BaseModel):
    """Request body for adding a member."""
    userId: str = Field(..., min_length=1)
    role: Literal["ADMIN", "MEMBER"] = "MEMBER"


class UpdateMemberRoleRequest(BaseModel):
    """Request body for changing a member's role."""
    role: Literal["ADMIN", "MEMBER"]
