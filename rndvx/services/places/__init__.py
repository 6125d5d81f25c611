"""Place search and location vote services."""

from rndvx.services.places.places_service import PlacesService, MOCK_PLACES
from rndvx.services.places.location_vote_service import LocationVoteService, tally_votes

__all__ = [
    "PlacesService",
    "MOCK_PLACES",
    "LocationVoteService",
    "tally_votes",
]
