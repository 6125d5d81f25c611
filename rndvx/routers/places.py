"""
FastAPI router for place search.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from common.utils import success_response
from common.utils.exceptions import ValidationException
from rndvx.dependencies import require_auth, get_places_service

router = APIRouter(prefix="/places", tags=["places"])


@router.get("/search")
async def search_places(
    user_id: Annotated[str, Depends(require_auth)],
    q: str = Query(""),
):
    """Search venues by name, address or type."""
    if not q.strip():
        raise ValidationException(
            message="Query parameter 'q' is required",
            code="MISSING_QUERY"
        )
    places = await get_places_service().search(q)
    return success_response({"places": places})


@router.get("/meetings/{meeting_id}/auto-pick")
async def auto_pick(
    meeting_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Suggest a venue for a meeting."""
    place = await get_places_service().auto_pick(meeting_id)
    return success_response({"place": place})


@router.get("/{place_id}")
async def get_place(
    place_id: str,
    user_id: Annotated[str, Depends(require_auth)],
):
    """Get details for one venue."""
    place = await get_places_service().get_details(place_id)
    return success_response({"place": place})
