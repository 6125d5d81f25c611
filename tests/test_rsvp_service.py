"""Unit tests for RsvpService access rules and quorum integration."""

import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock
from bson import ObjectId

from common.utils.exceptions import ForbiddenException, NotFoundException
from rndvx.services.meetings.quorum import QuorumEngine
from rndvx.services.meetings.rsvp_service import RsvpService
from tests.helpers import make_cursor


@pytest.fixture
def service(mock_db, mock_quorum, mock_notifier):
    return RsvpService(mock_db, quorum_engine=mock_quorum, notifier=mock_notifier)


def _rsvp_row(meeting_id, user_id, status):
    now = datetime.now(timezone.utc)
    return {
        "_id": ObjectId(),
        "meetingId": meeting_id,
        "userId": user_id,
        "status": status,
        "createdAt": now,
        "updatedAt": now,
    }


# ─────────────────────────────────────────────────────────────────
# upsert_rsvp
# ─────────────────────────────────────────────────────────────────


class TestUpsertRsvp:
    @pytest.mark.asyncio
    async def test_unknown_meeting_raises_not_found(self, service, attendee_id):
        with pytest.raises(NotFoundException):
            await service.upsert_rsvp(str(ObjectId()), str(attendee_id), "YES")

    @pytest.mark.asyncio
    async def test_malformed_meeting_id_raises_not_found(self, service, attendee_id):
        with pytest.raises(NotFoundException):
            await service.upsert_rsvp("not-an-id", str(attendee_id), "YES")

    @pytest.mark.asyncio
    async def test_stranger_is_forbidden(self, service, collections, meeting_doc, attendee_id, mock_quorum):
        collections["meetings"].find_one.return_value = meeting_doc

        with pytest.raises(ForbiddenException):
            await service.upsert_rsvp(str(meeting_doc["_id"]), str(attendee_id), "YES")

        collections["rsvps"].find_one_and_update.assert_not_awaited()
        mock_quorum.recheck.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invitee_may_rsvp(
        self, service, collections, meeting_doc, attendee_id, mock_quorum, mock_notifier
    ):
        collections["meetings"].find_one.return_value = meeting_doc
        collections["invites"].find_one.return_value = {
            "_id": ObjectId(), "meetingId": meeting_doc["_id"], "inviteeId": attendee_id,
        }
        collections["rsvps"].find_one_and_update.return_value = _rsvp_row(
            meeting_doc["_id"], attendee_id, "YES"
        )

        rsvp = await service.upsert_rsvp(str(meeting_doc["_id"]), str(attendee_id), "YES")

        assert rsvp["status"] == "YES"
        assert rsvp["userId"] == str(attendee_id)
        assert "user" not in rsvp
        mock_quorum.recheck.assert_awaited_once_with(meeting_doc["_id"])
        mock_notifier.rsvp_confirmation.assert_called_once_with(attendee_id, meeting_doc, "YES")

    @pytest.mark.asyncio
    async def test_organizer_may_rsvp(self, service, collections, meeting_doc, organizer_id):
        collections["meetings"].find_one.return_value = meeting_doc
        collections["rsvps"].find_one_and_update.return_value = _rsvp_row(
            meeting_doc["_id"], organizer_id, "MAYBE"
        )

        rsvp = await service.upsert_rsvp(str(meeting_doc["_id"]), str(organizer_id), "MAYBE")

        assert rsvp["status"] == "MAYBE"
        collections["invites"].find_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upsert_is_keyed_on_meeting_and_user(self, service, collections, meeting_doc, organizer_id):
        collections["meetings"].find_one.return_value = meeting_doc
        collections["rsvps"].find_one_and_update.return_value = _rsvp_row(
            meeting_doc["_id"], organizer_id, "NO"
        )

        await service.upsert_rsvp(str(meeting_doc["_id"]), str(organizer_id), "YES")
        await service.upsert_rsvp(str(meeting_doc["_id"]), str(organizer_id), "NO")

        calls = collections["rsvps"].find_one_and_update.await_args_list
        assert len(calls) == 2
        expected_filter = {"meetingId": meeting_doc["_id"], "userId": organizer_id}
        assert calls[0].args[0] == expected_filter
        assert calls[1].args[0] == expected_filter
        assert calls[1].args[1]["$set"]["status"] == "NO"
        assert all(c.kwargs["upsert"] is True for c in calls)


# ─────────────────────────────────────────────────────────────────
# Quorum integration (real engine, mocked store)
# ─────────────────────────────────────────────────────────────────


class TestRsvpDrivesQuorum:
    @pytest.mark.asyncio
    async def test_yes_to_no_below_threshold_demotes_confirmed_meeting(
        self, mock_db, collections, meeting_doc, organizer_id
    ):
        meeting_doc["status"] = "CONFIRMED"
        collections["meetings"].find_one.return_value = meeting_doc
        collections["rsvps"].find_one_and_update.return_value = _rsvp_row(
            meeting_doc["_id"], organizer_id, "NO"
        )
        collections["rsvps"].count_documents.return_value = 1

        service = RsvpService(mock_db, quorum_engine=QuorumEngine(mock_db))
        await service.upsert_rsvp(str(meeting_doc["_id"]), str(organizer_id), "NO")

        update = collections["meetings"].update_one.await_args
        assert update.args[1]["$set"]["status"] == "PENDING_QUORUM"

    @pytest.mark.asyncio
    async def test_second_yes_confirms_meeting(
        self, mock_db, collections, meeting_doc, organizer_id, mock_notifier
    ):
        collections["meetings"].find_one.return_value = meeting_doc
        collections["rsvps"].find_one_and_update.return_value = _rsvp_row(
            meeting_doc["_id"], organizer_id, "YES"
        )
        collections["rsvps"].count_documents.return_value = 2

        service = RsvpService(
            mock_db,
            quorum_engine=QuorumEngine(mock_db, notifier=mock_notifier),
            notifier=mock_notifier,
        )
        await service.upsert_rsvp(str(meeting_doc["_id"]), str(organizer_id), "YES")

        update = collections["meetings"].update_one.await_args
        assert update.args[1]["$set"]["status"] == "CONFIRMED"
        mock_notifier.meeting_confirmed.assert_called_once()


# ─────────────────────────────────────────────────────────────────
# list_rsvps
# ─────────────────────────────────────────────────────────────────


class TestListRsvps:
    @pytest.mark.asyncio
    async def test_stranger_is_forbidden(self, service, collections, meeting_doc, attendee_id):
        collections["meetings"].find_one.return_value = meeting_doc

        with pytest.raises(ForbiddenException):
            await service.list_rsvps(str(meeting_doc["_id"]), str(attendee_id))

    @pytest.mark.asyncio
    async def test_organizer_sees_rsvps_with_user_email(
        self, service, collections, meeting_doc, organizer_id, user_doc, attendee_id
    ):
        collections["meetings"].find_one.return_value = meeting_doc
        rows = [_rsvp_row(meeting_doc["_id"], attendee_id, "YES")]
        collections["rsvps"].find = MagicMock(return_value=make_cursor(rows))
        collections["users"].find = MagicMock(return_value=make_cursor([user_doc]))

        rsvps = await service.list_rsvps(str(meeting_doc["_id"]), str(organizer_id))

        assert len(rsvps) == 1
        assert rsvps[0]["user"] == {"id": str(attendee_id), "name": "Ana", "email": "ana@example.com"}
        collections["rsvps"].find.return_value.sort.assert_called_once_with("createdAt", 1)

    @pytest.mark.asyncio
    async def test_rsvp_of_deleted_user_carries_null_user(
        self, service, collections, meeting_doc, organizer_id, attendee_id
    ):
        collections["meetings"].find_one.return_value = meeting_doc
        rows = [_rsvp_row(meeting_doc["_id"], attendee_id, "YES")]
        collections["rsvps"].find = MagicMock(return_value=make_cursor(rows))

        rsvps = await service.list_rsvps(str(meeting_doc["_id"]), str(organizer_id))

        assert "user" in rsvps[0]
        assert rsvps[0]["user"] is None
        assert rsvps[0]["userId"] == str(attendee_id)


# ─────────────────────────────────────────────────────────────────
# delete_rsvp
# ─────────────────────────────────────────────────────────────────


class TestDeleteRsvp:
    @pytest.mark.asyncio
    async def test_missing_row_raises_not_found(self, service, collections, meeting_doc, attendee_id, mock_quorum):
        collections["rsvps"].delete_one.return_value = MagicMock(deleted_count=0)

        with pytest.raises(NotFoundException):
            await service.delete_rsvp(str(meeting_doc["_id"]), str(attendee_id))

        mock_quorum.recheck.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_reruns_quorum(self, service, meeting_doc, attendee_id, mock_quorum):
        await service.delete_rsvp(str(meeting_doc["_id"]), str(attendee_id))

        mock_quorum.recheck.assert_awaited_once_with(meeting_doc["_id"])
