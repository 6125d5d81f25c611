"""
FastAPI router for invite endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from common.utils import success_response
from rndvx.dependencies import require_auth, get_invite_service
from rndvx.schemas.invites import CreateInviteRequest, RespondInviteRequest

router = APIRouter(prefix="/invites", tags=["invites"])


@router.get("")
async def list_invites(user_id: Annotated[str, Depends(require_auth)]):
    """Invites the user sent or received."""
    invites = await get_invite_service().list_invites(user_id)
    return success_response({"invites": invites})


@router.get("/token/{token}")
async def get_invite_by_token(
    token: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Look up an invite from the link token."""
    invite = await get_invite_service().get_by_token(token)
    return success_response({"invite": invite})


@router.post("", status_code=201)
async def create_invite(
    body: CreateInviteRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Invite someone by email to a group and/or meeting."""
    invite = await get_invite_service().create_invite(
        sender_id=user_id,
        invitee_email=body.inviteeEmail,
        group_id=body.groupId,
        meeting_id=body.meetingId,
        expires_at=body.expiresAt,
    )
    return success_response({"invite": invite})


@router.put("/token/{token}/respond")
async def respond_to_invite(
    token: str,
    body: RespondInviteRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Accept or decline an invite."""
    invite = await get_invite_service().respond(token, user_id, body.status)
    return success_response({"invite": invite})


@router.delete("/{invite_id}", status_code=204)
async def delete_invite(
    invite_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Delete an invite (sender only)."""
    await get_invite_service().delete_invite(invite_id, user_id)
    return Response(status_code=204)
