"""
Fire-and-forget meeting notifications.

Request handlers never wait for email delivery. Each notification is
scheduled as an asyncio task; failures are logged and dropped.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from rndvx.database.collections import USERS
from rndvx.services.email.email_service import EmailService

logger = logging.getLogger(__name__)


class MeetingNotifier:
    """Resolves recipients and dispatches meeting emails in the background."""

    def __init__(self, db: AsyncIOMotorDatabase, email_service: EmailService):
        self._users_collection = db[USERS]
        self._email_service = email_service
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _dispatch(self, label: str, coro: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(label, t))
        return task

    def _on_done(self, label: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Notification '{label}' failed: {exc}")

    async def drain(self) -> None:
        """Wait for in-flight notifications, e.g. on shutdown."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _emails_for(self, user_ids: Iterable[ObjectId]) -> List[str]:
        ids = list({uid for uid in user_ids if uid is not None})
        if not ids:
            return []
        users = await self._users_collection.find(
            {"_id": {"$in": ids}}, {"email": 1}
        ).to_list(length=None)
        return [u["email"] for u in users if u.get("email")]

    async def _deliver(
        self,
        label: str,
        user_ids: Iterable[ObjectId],
        send: Callable[[str], Awaitable[Dict[str, Any]]],
    ) -> int:
        """Send to every recipient, tolerating individual failures. Returns sent count."""
        emails = await self._emails_for(user_ids)
        results = await asyncio.gather(*(send(e) for e in emails), return_exceptions=True)

        sent = 0
        for email, result in zip(emails, results):
            if isinstance(result, Exception):
                logger.warning(f"{label} email to {email} failed: {result}")
            elif not result.get("success"):
                logger.warning(f"{label} email to {email} failed: {result.get('error')}")
            else:
                sent += 1
        return sent

    # -------------------------------------------------------------------------
    # Background notifications
    # -------------------------------------------------------------------------

    def meeting_created(self, meeting: Dict[str, Any]) -> asyncio.Task:
        return self._dispatch(
            "meeting_created",
            self._deliver(
                "Meeting created",
                [meeting["organizerId"]],
                lambda email: self._email_service.send_meeting_created(
                    email, meeting["title"], meeting["dateTime"]
                ),
            ),
        )

    def rsvp_confirmation(
        self,
        user_id: ObjectId,
        meeting: Dict[str, Any],
        status: str,
    ) -> asyncio.Task:
        return self._dispatch(
            "rsvp_confirmation",
            self._deliver(
                "RSVP confirmation",
                [user_id],
                lambda email: self._email_service.send_rsvp_confirmation(
                    email, meeting["title"], status
                ),
            ),
        )

    def meeting_confirmed(
        self,
        meeting: Dict[str, Any],
        user_ids: Iterable[ObjectId],
    ) -> asyncio.Task:
        return self._dispatch(
            "meeting_confirmed",
            self._deliver(
                "Meeting confirmed",
                list(user_ids),
                lambda email: self._email_service.send_meeting_confirmed(
                    email, meeting["title"], meeting["dateTime"]
                ),
            ),
        )

    def meeting_cancelled(
        self,
        meeting: Dict[str, Any],
        user_ids: Iterable[ObjectId],
    ) -> asyncio.Task:
        return self._dispatch(
            "meeting_cancelled",
            self._deliver(
                "Meeting cancelled",
                list(user_ids),
                lambda email: self._email_service.send_meeting_cancelled(
                    email, meeting["title"]
                ),
            ),
        )

    def invitation(
        self,
        invite: Dict[str, Any],
        sender_name: str,
        target_name: str,
    ) -> asyncio.Task:
        async def send_invite() -> None:
            result = await self._email_service.send_invitation(
                invite["inviteeEmail"],
                invite["token"],
                sender_name,
                target_name,
                invite.get("expiresAt"),
            )
            if not result.get("success"):
                logger.warning(
                    f"Invitation email to {invite['inviteeEmail']} failed: {result.get('error')}"
                )

        return self._dispatch("invitation", send_invite())

    # -------------------------------------------------------------------------
    # Awaited notifications (scheduler)
    # -------------------------------------------------------------------------

    async def send_reminders(
        self,
        meeting: Dict[str, Any],
        user_ids: Iterable[ObjectId],
    ) -> int:
        """Send reminder emails and wait for every attempt to settle."""
        return await self._deliver(
            "Meeting reminder",
            list(user_ids),
            lambda email: self._email_service.send_meeting_reminder(
                email, meeting["title"], meeting["dateTime"]
            ),
        )


def describe_target(
    group: Optional[Dict[str, Any]],
    meeting: Optional[Dict[str, Any]],
) -> str:
    """Human-readable name of what an invite points at."""
    if meeting:
        return meeting.get("title", "a meeting")
    if group:
        return group.get("name", "a group")
    return "rndvx"
