"""Unit tests for place search and location votes."""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from common.utils.exceptions import ForbiddenException, NotFoundException
from rndvx.services.places import LocationVoteService, PlacesService
from rndvx.services.places.location_vote_service import tally_votes
from tests.helpers import make_cursor


PLACE = {
    "placeId": "mock-place-2",
    "name": "Riverside Park",
    "address": "456 River Rd, Springfield",
    "lat": 37.7739,
    "lng": -122.4312,
}


def _vote(place_id, name="Somewhere", user_id=None):
    return {
        "_id": ObjectId(),
        "meetingId": ObjectId(),
        "userId": user_id or ObjectId(),
        "placeId": place_id,
        "name": name,
        "address": "1 Street",
        "lat": None,
        "lng": None,
        "createdAt": datetime.now(timezone.utc),
    }


# ─────────────────────────────────────────────────────────────────
# tally_votes
# ─────────────────────────────────────────────────────────────────


class TestTallyVotes:
    def test_counts_per_place_most_first(self):
        tally = tally_votes([_vote("a"), _vote("b"), _vote("b")])

        assert [(e["placeId"], e["count"]) for e in tally] == [("b", 2), ("a", 1)]

    def test_ties_keep_first_vote_order(self):
        tally = tally_votes([_vote("a"), _vote("b")])

        assert [e["placeId"] for e in tally] == ["a", "b"]

    def test_empty(self):
        assert tally_votes([]) == []


# ─────────────────────────────────────────────────────────────────
# PlacesService
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def vote_service():
    service = MagicMock()
    service.tally_for_meeting = AsyncMock(return_value=[])
    return service


@pytest.fixture
def places(vote_service):
    return PlacesService(vote_service)


class TestPlacesService:
    @pytest.mark.asyncio
    async def test_search_matches_name_case_insensitively(self, places):
        results = await places.search("coffee")

        assert [p["placeId"] for p in results] == ["mock-place-1"]

    @pytest.mark.asyncio
    async def test_search_matches_types(self, places):
        results = await places.search("food")

        assert {p["placeId"] for p in results} == {"mock-place-1", "mock-place-3"}

    @pytest.mark.asyncio
    async def test_search_without_matches_is_empty(self, places):
        assert await places.search("aquarium") == []

    @pytest.mark.asyncio
    async def test_details_unknown_place_raises_not_found(self, places):
        with pytest.raises(NotFoundException):
            await places.get_details("nowhere")

    @pytest.mark.asyncio
    async def test_details_returns_copy(self, places):
        place = await places.get_details("mock-place-2")
        place["name"] = "changed"

        assert (await places.get_details("mock-place-2"))["name"] == "Riverside Park"

    @pytest.mark.asyncio
    async def test_auto_pick_without_votes_uses_first_place(self, places):
        place = await places.auto_pick(str(ObjectId()))

        assert place["placeId"] == "mock-place-1"

    @pytest.mark.asyncio
    async def test_auto_pick_prefers_most_voted(self, places, vote_service):
        vote_service.tally_for_meeting.return_value = [
            {"placeId": "mock-place-3", "name": "The Board Room", "address": "x", "count": 2},
        ]

        place = await places.auto_pick(str(ObjectId()))

        assert place["placeId"] == "mock-place-3"
        assert place["types"] == ["bar", "food"]

    @pytest.mark.asyncio
    async def test_auto_pick_outside_catalogue_uses_vote_details(self, places, vote_service):
        vote_service.tally_for_meeting.return_value = [
            {"placeId": "custom", "name": "Ana's place", "address": "2 Lane", "lat": 1.0, "lng": 2.0, "count": 1},
        ]

        place = await places.auto_pick(str(ObjectId()))

        assert place == {
            "placeId": "custom", "name": "Ana's place", "address": "2 Lane",
            "lat": 1.0, "lng": 2.0, "types": [],
        }

    @pytest.mark.asyncio
    async def test_auto_pick_unknown_meeting_propagates(self, places, vote_service):
        vote_service.tally_for_meeting.side_effect = NotFoundException(message="Meeting not found")

        with pytest.raises(NotFoundException):
            await places.auto_pick(str(ObjectId()))


# ─────────────────────────────────────────────────────────────────
# LocationVoteService
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def votes(mock_db):
    return LocationVoteService(mock_db)


class TestLocationVotes:
    @pytest.mark.asyncio
    async def test_stranger_cannot_vote(self, votes, collections, meeting_doc, attendee_id):
        collections["meetings"].find_one.return_value = meeting_doc

        with pytest.raises(ForbiddenException):
            await votes.cast_vote(str(meeting_doc["_id"]), str(attendee_id), PLACE)

        collections["locationvotes"].insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_organizer_votes(self, votes, collections, meeting_doc, organizer_id):
        collections["meetings"].find_one.return_value = meeting_doc

        vote = await votes.cast_vote(str(meeting_doc["_id"]), str(organizer_id), PLACE)

        doc = collections["locationvotes"].insert_one.await_args.args[0]
        assert doc["meetingId"] == meeting_doc["_id"]
        assert doc["userId"] == organizer_id
        assert vote["placeId"] == "mock-place-2"

    @pytest.mark.asyncio
    async def test_list_returns_votes_and_tally(self, votes, collections, meeting_doc, organizer_id):
        collections["meetings"].find_one.return_value = meeting_doc
        rows = [_vote("a"), _vote("b"), _vote("b")]
        collections["locationvotes"].find = MagicMock(return_value=make_cursor(rows))

        result = await votes.list_votes(str(meeting_doc["_id"]), str(organizer_id))

        assert len(result["votes"]) == 3
        assert result["tally"][0]["placeId"] == "b"

    @pytest.mark.asyncio
    async def test_tally_for_unknown_meeting_raises_not_found(self, votes):
        with pytest.raises(NotFoundException):
            await votes.tally_for_meeting(str(ObjectId()))

    @pytest.mark.asyncio
    async def test_remove_unknown_vote_raises_not_found(self, votes, attendee_id):
        with pytest.raises(NotFoundException):
            await votes.remove_vote(str(ObjectId()), str(ObjectId()), str(attendee_id))

    @pytest.mark.asyncio
    async def test_cannot_remove_someone_elses_vote(self, votes, collections, attendee_id):
        row = _vote("a")
        collections["locationvotes"].find_one.return_value = row

        with pytest.raises(ForbiddenException):
            await votes.remove_vote(str(row["meetingId"]), str(row["_id"]), str(attendee_id))

        collections["locationvotes"].delete_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_voter_removes_own_vote(self, votes, collections, attendee_id):
        row = _vote("a", user_id=attendee_id)
        collections["locationvotes"].find_one.return_value = row

        await votes.remove_vote(str(row["meetingId"]), str(row["_id"]), str(attendee_id))

        collections["locationvotes"].delete_one.assert_awaited_once_with({"_id": row["_id"]})
