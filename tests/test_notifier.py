"""Unit tests for EmailService rendering and MeetingNotifier dispatch."""

import logging

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from rndvx.services.email import EmailService, MeetingNotifier, describe_target
from tests.helpers import make_cursor


@pytest.fixture
def email_service():
    service = MagicMock()
    ok = {"success": True, "mode": "console"}
    for name in (
        "send_meeting_created",
        "send_rsvp_confirmation",
        "send_meeting_confirmed",
        "send_meeting_cancelled",
        "send_meeting_reminder",
        "send_invitation",
    ):
        setattr(service, name, AsyncMock(return_value=ok))
    return service


@pytest.fixture
def notifier(mock_db, email_service):
    return MeetingNotifier(mock_db, email_service)


def _users(collections, *emails):
    collections["users"].find = MagicMock(return_value=make_cursor([
        {"_id": ObjectId(), "email": e} for e in emails
    ]))


class TestEmailService:
    def test_unconfigured_providers_fall_back_to_console(self, monkeypatch):
        monkeypatch.delenv("RESEND_API_KEY", raising=False)
        monkeypatch.delenv("SMTP_HOST", raising=False)

        assert EmailService(mode="resend").mode == "console"
        assert EmailService(mode="smtp").mode == "console"
        assert EmailService(mode="smtp", smtp_host="mail.example.com").mode == "smtp"

    @pytest.mark.asyncio
    async def test_console_send_succeeds(self):
        service = EmailService(mode="console")

        result = await service.send_invitation(
            "ana@example.com", "tok", "Olle", "Board game night",
            datetime(2027, 1, 2, tzinfo=timezone.utc),
        )

        assert result["success"] is True
        assert result["mode"] == "console"

    def test_render_escapes_html(self):
        service = EmailService(mode="console", team_name="Team")

        html, text = service._render("Hi <b>", ["a & b"], "https://app/x")

        assert "&lt;b&gt;" in html
        assert "a &amp; b" in html
        assert "https://app/x" in text
        assert text.endswith("Team")


class TestMeetingNotifier:
    @pytest.mark.asyncio
    async def test_confirmed_emails_every_attendee(self, notifier, collections, email_service, meeting_doc):
        _users(collections, "a@example.com", "b@example.com")

        notifier.meeting_confirmed(meeting_doc, [ObjectId(), ObjectId()])
        assert notifier.pending == 1
        await notifier.drain()

        assert email_service.send_meeting_confirmed.await_count == 2
        assert notifier.pending == 0

    @pytest.mark.asyncio
    async def test_no_recipients_sends_nothing(self, notifier, email_service, meeting_doc):
        notifier.meeting_cancelled(meeting_doc, [])
        await notifier.drain()

        email_service.send_meeting_cancelled.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_reminders_counts_successes(self, notifier, collections, email_service, meeting_doc):
        _users(collections, "a@example.com", "b@example.com", "c@example.com")
        email_service.send_meeting_reminder.side_effect = [
            {"success": True},
            {"success": False, "error": "bounced"},
            RuntimeError("timeout"),
        ]

        sent = await notifier.send_reminders(meeting_doc, [ObjectId(), ObjectId(), ObjectId()])

        assert sent == 1

    @pytest.mark.asyncio
    async def test_background_failure_is_logged_not_raised(
        self, notifier, collections, meeting_doc, caplog
    ):
        collections["users"].find = MagicMock(side_effect=RuntimeError("db down"))

        with caplog.at_level(logging.WARNING):
            notifier.meeting_created(meeting_doc)
            await notifier.drain()

        assert "meeting_created" in caplog.text

    @pytest.mark.asyncio
    async def test_invitation_goes_to_invitee_email(self, notifier, email_service):
        invite = {"inviteeEmail": "ana@example.com", "token": "tok", "expiresAt": None}

        notifier.invitation(invite, "Olle", "Hikers")
        await notifier.drain()

        email_service.send_invitation.assert_awaited_once_with(
            "ana@example.com", "tok", "Olle", "Hikers", None
        )


class TestDescribeTarget:
    def test_prefers_meeting_title(self):
        assert describe_target({"name": "Hikers"}, {"title": "Summit"}) == "Summit"

    def test_group_name(self):
        assert describe_target({"name": "Hikers"}, None) == "Hikers"
