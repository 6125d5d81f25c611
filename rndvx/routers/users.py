"""
FastAPI router for the current user's profile.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response
from rndvx.dependencies import require_auth, get_user_service
from rndvx.schemas.auth import UpdateProfileRequest

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me")
async def get_profile(user_id: Annotated[str, Depends(require_auth)]):
    """Get current user's profile."""
    user = await get_user_service().get_profile(user_id)
    return success_response({"user": user})


@router.put("/me")
async def update_profile(
    body: UpdateProfileRequest,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Update current user's name and/or email."""
    user = await get_user_service().update_profile(
        user_id,
        name=body.name,
        email=body.email,
    )
    return success_response({"user": user})
