"""
Place search.

Static in-memory catalogue standing in for a real places provider. The
search/get_details/auto_pick contract is what callers depend on; a real
provider must keep it.
"""

import logging
from typing import Any, Dict, List

from common.utils.exceptions import NotFoundException

logger = logging.getLogger(__name__)


MOCK_PLACES: List[Dict[str, Any]] = [
    {
        "placeId": "mock-place-1",
        "name": "The Coffee House",
        "address": "123 Main St, Springfield",
        "lat": 37.7749,
        "lng": -122.4194,
        "types": ["cafe", "food"],
    },
    {
        "placeId": "mock-place-2",
        "name": "Riverside Park",
        "address": "456 River Rd, Springfield",
        "lat": 37.7739,
        "lng": -122.4312,
        "types": ["park", "outdoors"],
    },
    {
        "placeId": "mock-place-3",
        "name": "The Board Room",
        "address": "789 Oak Ave, Springfield",
        "lat": 37.7751,
        "lng": -122.4183,
        "types": ["bar", "food"],
    },
]


class PlacesService:
    """
    Looks up meeting venues.
    """

    def __init__(self, location_vote_service, places: List[Dict[str, Any]] = None):
        """
        Args:
            location_vote_service: Source of vote tallies for auto_pick
            places: Catalogue override (defaults to MOCK_PLACES)
        """
        self._votes = location_vote_service
        self._places = places if places is not None else MOCK_PLACES

    async def search(self, query: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring match on name, address or type."""
        q = query.strip().lower()
        return [
            dict(p)
            for p in self._places
            if q in p["name"].lower()
            or q in p["address"].lower()
            or any(q in t.lower() for t in p.get("types", []))
        ]

    async def get_details(self, place_id: str) -> Dict[str, Any]:
        """
        Raises:
            NotFoundException: Unknown place id
        """
        for place in self._places:
            if place["placeId"] == place_id:
                return dict(place)
        raise NotFoundException(message="Place not found", code="PLACE_NOT_FOUND")

    async def auto_pick(self, meeting_id: str) -> Dict[str, Any]:
        """
        Suggest a venue for a meeting: the most-voted place if anyone has
        voted, otherwise the first catalogue entry.

        Raises:
            NotFoundException: Meeting not found
        """
        tally = await self._votes.tally_for_meeting(meeting_id)
        if tally:
            top = tally[0]
            for place in self._places:
                if place["placeId"] == top["placeId"]:
                    return dict(place)
            return {
                "placeId": top["placeId"],
                "name": top["name"],
                "address": top["address"],
                "lat": top.get("lat"),
                "lng": top.get("lng"),
                "types": [],
            }

        if not self._places:
            raise NotFoundException(message="No places available", code="PLACE_NOT_FOUND")
        logger.debug(f"No location votes for meeting {meeting_id}, picking default place")
        return dict(self._places[0])
