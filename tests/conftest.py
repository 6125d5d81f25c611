"""Shared test fixtures for rndvx backend tests."""

from collections import defaultdict
from datetime import datetime, timezone, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from tests.helpers import make_collection


@pytest.fixture
def collections():
    """Collections keyed by name; each name always maps to the same mock."""
    return defaultdict(make_collection)


@pytest.fixture
def mock_db(collections):
    db = MagicMock()
    db.__getitem__ = MagicMock(side_effect=lambda name: collections[name])
    return db


@pytest.fixture
def mock_notifier():
    notifier = MagicMock()
    notifier.send_reminders = AsyncMock(return_value=0)
    return notifier


@pytest.fixture
def mock_quorum():
    quorum = MagicMock()
    quorum.recheck = AsyncMock(return_value=None)
    return quorum


@pytest.fixture
def organizer_id():
    return ObjectId()


@pytest.fixture
def attendee_id():
    return ObjectId()


@pytest.fixture
def meeting_doc(organizer_id):
    now = datetime.now(timezone.utc)
    return {
        "_id": ObjectId(),
        "title": "Board game night",
        "description": "Bring snacks",
        "organizerId": organizer_id,
        "groupId": None,
        "dateTime": now + timedelta(days=3),
        "durationMinutes": 120,
        "quorumThreshold": 2,
        "recurrence": "NONE",
        "status": "DRAFT",
        "locationName": None,
        "locationAddress": None,
        "locationPlaceId": None,
        "locationLat": None,
        "locationLng": None,
        "parentMeetingId": None,
        "reminderSentAt": None,
        "createdAt": now,
        "updatedAt": now,
    }


@pytest.fixture
def user_doc(attendee_id):
    now = datetime.now(timezone.utc)
    return {
        "_id": attendee_id,
        "email": "ana@example.com",
        "name": "Ana",
        "passwordHash": "hash",
        "createdAt": now,
        "updatedAt": now,
    }
