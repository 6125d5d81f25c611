"""
FastAPI router for group endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from common.utils import success_response
from rndvx.dependencies import require_auth, get_group_service
from rndvx.schemas.groups import (
    CreateGroupRequest,
    UpdateGroupRequest,
    AddMemberRequest,
    UpdateMemberRoleRequest,
)

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("")
async def list_groups(user_id: Annotated[str, Depends(require_auth)]):
    """Groups the user belongs to."""
    groups = await get_group_service().list_groups(user_id)
    return success_response({"groups": groups})


@router.post("", status_code=201)
async def create_group(
    body: CreateGroupRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Create a group owned by the caller."""
    group = await get_group_service().create_group(user_id, body.name)
    return success_response({"group": group})


@router.get("/{group_id}")
async def get_group(
    group_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Get a group (members only)."""
    group = await get_group_service().get_group(group_id, user_id)
    return success_response({"group": group})


@router.put("/{group_id}")
async def update_group(
    group_id: str,
    body: UpdateGroupRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Rename a group (owner or admin)."""
    group = await get_group_service().update_group(group_id, user_id, name=body.name)
    return success_response({"group": group})


@router.delete("/{group_id}", status_code=204)
async def delete_group(
    group_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Delete a group (owner only)."""
    await get_group_service().delete_group(group_id, user_id)
    return Response(status_code=204)


@router.post("/{group_id}/members", status_code=201)
async def add_member(
    group_id: str,
    body: AddMemberRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Add a member or set their role (owner or admin)."""
    member = await get_group_service().add_member(
        group_id, user_id, body.userId, role=body.role
    )
    return success_response({"member": member})


@router.put("/{group_id}/members/{member_id}")
async def update_member_role(
    group_id: str,
    member_id: str,
    body: UpdateMemberRoleRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Change a member's role (owner only)."""
    member = await get_group_service().update_member_role(
        group_id, user_id, member_id, body.role
    )
    return success_response({"member": member})


@router.delete("/{group_id}/members/{member_id}", status_code=204)
async def remove_member(
    group_id: str,
    member_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Remove a member, or leave the group."""
    await get_group_service().remove_member(group_id, user_id, member_id)
    return Response(status_code=204)
