"""
FastAPI router for authentication endpoints.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response
from rndvx.dependencies import require_auth, get_user_service
from rndvx.schemas.auth import RegisterRequest, LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
async def register(body: RegisterRequest):
    """Create an account and return a bearer token."""
    user_service = get_user_service()
    result = await user_service.register(
        email=body.email,
        password=body.password,
        name=body.name,
    )
    return success_response(result)


@router.post("/login")
async def login(body: LoginRequest):
    """Exchange credentials for a bearer token."""
    user_service = get_user_service()
    result = await user_service.login(email=body.email, password=body.password)
    return success_response(result)


@router.get("/me")
async def me(user_id: Annotated[str, Depends(require_auth)]):
    """Get the authenticated user."""
    user_service = get_user_service()
    user = await user_service.get_profile(user_id)
    return success_response({"user": user})
