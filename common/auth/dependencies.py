"""
FastAPI dependency factory for bearer-token authentication.

Example:
    get_token_subject = create_auth_dependency(get_auth_provider)

    @router.get("/users/me")
    async def me(user_id: str = Depends(get_token_subject)):
        ...
"""

from typing import Callable, Optional

from fastapi import Header

from common.auth.base import AuthProvider
from common.utils.exceptions import UnauthorizedException


def create_auth_dependency(
    get_auth_provider: Callable[[], AuthProvider],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Build a dependency that returns the ``sub`` claim of a valid token.

    The provider is looked up per request, so it can be initialized after
    the routers are imported.
    """

    async def get_token_subject(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> str:
        if not authorization:
            raise UnauthorizedException("Authentication required", code="UNAUTHORIZED")

        parts = authorization.split(" ", 1)
        if len(parts) != 2 or parts[0].lower() != scheme.lower():
            raise UnauthorizedException(
                f"Invalid authorization scheme. Expected: {scheme}",
                code="INVALID_AUTH_SCHEME",
            )

        token = parts[1].strip()
        if not token:
            raise UnauthorizedException("Token is empty", code="EMPTY_TOKEN")

        try:
            payload = await get_auth_provider().verify_token(token)
        except ValueError:
            raise UnauthorizedException("Invalid or expired token", code="INVALID_TOKEN")

        user_id = payload.get("sub")
        if not user_id:
            raise UnauthorizedException("Token missing user ID", code="INVALID_TOKEN")

        return user_id

    return get_token_subject
