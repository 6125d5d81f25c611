"""Unit tests for recurring meeting generation in RecurrenceService."""

import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock
from bson import ObjectId

from common.utils.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from rndvx.services.meetings.recurrence_service import (
    RecurrenceService,
    next_index,
    occurrence,
)
from tests.helpers import make_cursor


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def service(mock_db):
    return RecurrenceService(mock_db)


@pytest.fixture
def recurring_meeting(meeting_doc):
    """A weekly recurring meeting at a fixed hour."""
    meeting_doc.update({
        "recurrence": "WEEKLY",
        "status": "CONFIRMED",
        "dateTime": datetime(2027, 3, 4, 18, 0, tzinfo=timezone.utc),
        "locationName": "Cafe Blom",
        "locationPlaceId": "mock_place_1",
    })
    return meeting_doc


def _inserted(collections):
    """Every instance passed to insert_many, across all calls."""
    docs = []
    for call in collections["meetings"].insert_many.await_args_list:
        docs.extend(call.args[0])
    return docs


# ─────────────────────────────────────────────────────────────────
# Validation and access
# ─────────────────────────────────────────────────────────────────


class TestGenerateValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 53, -1])
    async def test_count_out_of_range_rejected(self, service, collections, recurring_meeting, organizer_id, count):
        collections["meetings"].find_one.return_value = recurring_meeting

        with pytest.raises(ValidationException):
            await service.generate_instances(str(recurring_meeting["_id"]), str(organizer_id), count)

        collections["meetings"].insert_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_recurring_meeting_rejected(self, service, collections, meeting_doc, organizer_id):
        collections["meetings"].find_one.return_value = meeting_doc

        with pytest.raises(ValidationException):
            await service.generate_instances(str(meeting_doc["_id"]), str(organizer_id), 2)

        collections["meetings"].insert_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_only_organizer_may_generate(self, service, collections, recurring_meeting, attendee_id):
        collections["meetings"].find_one.return_value = recurring_meeting

        with pytest.raises(ForbiddenException):
            await service.generate_instances(str(recurring_meeting["_id"]), str(attendee_id), 2)

    @pytest.mark.asyncio
    async def test_unknown_parent_raises_not_found(self, service, organizer_id):
        with pytest.raises(NotFoundException):
            await service.generate_instances(str(ObjectId()), str(organizer_id), 2)


# ─────────────────────────────────────────────────────────────────
# Date stepping
# ─────────────────────────────────────────────────────────────────


class TestGenerateDates:
    @pytest.mark.asyncio
    async def test_weekly_steps_from_parent(self, service, collections, recurring_meeting, organizer_id):
        collections["meetings"].find_one.side_effect = [recurring_meeting, None]

        await service.generate_instances(str(recurring_meeting["_id"]), str(organizer_id), 3)

        dates = [d["dateTime"] for d in _inserted(collections)]
        start = recurring_meeting["dateTime"]
        assert dates == [start + timedelta(days=7 * n) for n in (1, 2, 3)]

    @pytest.mark.asyncio
    async def test_biweekly_steps_two_weeks(self, service, collections, recurring_meeting, organizer_id):
        recurring_meeting["recurrence"] = "BIWEEKLY"
        collections["meetings"].find_one.side_effect = [recurring_meeting, None]

        await service.generate_instances(str(recurring_meeting["_id"]), str(organizer_id), 2)

        dates = [d["dateTime"] for d in _inserted(collections)]
        start = recurring_meeting["dateTime"]
        assert dates == [start + timedelta(days=14), start + timedelta(days=28)]

    @pytest.mark.asyncio
    async def test_monthly_month_end_series_keeps_month_end(self, service, collections, recurring_meeting, organizer_id):
        recurring_meeting["recurrence"] = "MONTHLY"
        recurring_meeting["dateTime"] = datetime(2027, 1, 31, 18, 0, tzinfo=timezone.utc)
        collections["meetings"].find_one.side_effect = [recurring_meeting, None]

        await service.generate_instances(str(recurring_meeting["_id"]), str(organizer_id), 2)

        dates = [d["dateTime"] for d in _inserted(collections)]
        assert dates == [
            datetime(2027, 2, 28, 18, 0, tzinfo=timezone.utc),
            datetime(2027, 3, 31, 18, 0, tzinfo=timezone.utc),
        ]

    @pytest.mark.asyncio
    async def test_monthly_batch_after_clamped_instance_returns_to_31st(
        self, service, collections, recurring_meeting, organizer_id
    ):
        recurring_meeting["recurrence"] = "MONTHLY"
        recurring_meeting["dateTime"] = datetime(2027, 1, 31, 18, 0, tzinfo=timezone.utc)
        latest = {"dateTime": datetime(2027, 2, 28, 18, 0, tzinfo=timezone.utc)}
        collections["meetings"].find_one.side_effect = [recurring_meeting, latest]

        await service.generate_instances(str(recurring_meeting["_id"]), str(organizer_id), 3)

        dates = [d["dateTime"] for d in _inserted(collections)]
        assert dates == [
            datetime(2027, 3, 31, 18, 0, tzinfo=timezone.utc),
            datetime(2027, 4, 30, 18, 0, tzinfo=timezone.utc),
            datetime(2027, 5, 31, 18, 0, tzinfo=timezone.utc),
        ]

    @pytest.mark.asyncio
    async def test_second_batch_continues_after_latest_instance(
        self, service, collections, recurring_meeting, organizer_id
    ):
        collections["meetings"].find_one.side_effect = [recurring_meeting, None]
        await service.generate_instances(str(recurring_meeting["_id"]), str(organizer_id), 2)

        latest = _inserted(collections)[-1]
        collections["meetings"].find_one.side_effect = [recurring_meeting, latest]
        await service.generate_instances(str(recurring_meeting["_id"]), str(organizer_id), 3)

        dates = [d["dateTime"] for d in _inserted(collections)]
        assert len(dates) == 5
        assert len(set(dates)) == 5
        assert all(a < b for a, b in zip(dates, dates[1:]))
        assert dates[0] > recurring_meeting["dateTime"]

    @pytest.mark.asyncio
    async def test_latest_instance_looked_up_by_date(self, service, collections, recurring_meeting, organizer_id):
        collections["meetings"].find_one.side_effect = [recurring_meeting, None]

        await service.generate_instances(str(recurring_meeting["_id"]), str(organizer_id), 1)

        lookup = collections["meetings"].find_one.await_args_list[1]
        assert lookup.args[0] == {"parentMeetingId": recurring_meeting["_id"]}
        assert lookup.kwargs["sort"] == [("dateTime", -1)]


# ─────────────────────────────────────────────────────────────────
# Instance contents
# ─────────────────────────────────────────────────────────────────


class TestGeneratedInstances:
    @pytest.mark.asyncio
    async def test_instances_inherit_parent_fields_as_drafts(
        self, service, collections, recurring_meeting, organizer_id
    ):
        collections["meetings"].find_one.side_effect = [recurring_meeting, None]

        await service.generate_instances(str(recurring_meeting["_id"]), str(organizer_id), 2)

        for doc in _inserted(collections):
            assert doc["status"] == "DRAFT"
            assert doc["parentMeetingId"] == recurring_meeting["_id"]
            assert doc["reminderSentAt"] is None
            assert doc["title"] == recurring_meeting["title"]
            assert doc["organizerId"] == organizer_id
            assert doc["quorumThreshold"] == recurring_meeting["quorumThreshold"]
            assert doc["durationMinutes"] == recurring_meeting["durationMinutes"]
            assert doc["recurrence"] == "WEEKLY"
            assert doc["locationName"] == "Cafe Blom"
            assert doc["locationPlaceId"] == "mock_place_1"
            assert "_id" not in doc

    @pytest.mark.asyncio
    async def test_returns_whole_series_in_date_order(
        self, service, collections, recurring_meeting, organizer_id
    ):
        child = {
            **recurring_meeting,
            "_id": ObjectId(),
            "status": "DRAFT",
            "parentMeetingId": recurring_meeting["_id"],
            "dateTime": recurring_meeting["dateTime"] + timedelta(days=7),
        }
        collections["meetings"].find_one.side_effect = [recurring_meeting, None]
        collections["meetings"].find = MagicMock(return_value=make_cursor([child]))

        result = await service.generate_instances(str(recurring_meeting["_id"]), str(organizer_id), 1)

        assert [m["id"] for m in result] == [str(child["_id"])]
        assert result[0]["parentMeetingId"] == str(recurring_meeting["_id"])
        collections["meetings"].find.assert_called_once_with({"parentMeetingId": recurring_meeting["_id"]})
        collections["meetings"].find.return_value.sort.assert_called_once_with("dateTime", 1)


class TestOccurrence:
    def test_none_rule_raises(self):
        with pytest.raises(ValidationException):
            occurrence(datetime(2027, 1, 1, tzinfo=timezone.utc), "NONE", 1)

    def test_monthly_measured_from_series_start(self):
        start = datetime(2028, 1, 31, tzinfo=timezone.utc)

        assert occurrence(start, "MONTHLY", 1) == datetime(2028, 2, 29, tzinfo=timezone.utc)
        assert occurrence(start, "MONTHLY", 2) == datetime(2028, 3, 31, tzinfo=timezone.utc)

    def test_next_index_without_instances_is_one(self):
        start = datetime(2027, 3, 4, 18, 0, tzinfo=timezone.utc)

        assert next_index(start, start, "WEEKLY") == 1

    def test_next_index_skips_past_off_grid_instance(self):
        start = datetime(2027, 3, 4, 18, 0, tzinfo=timezone.utc)
        after = start + timedelta(days=10)

        assert next_index(start, after, "WEEKLY") == 2
