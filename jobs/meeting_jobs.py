"""
Meeting background jobs.

- ReminderJob: emails attendees of meetings starting soon, once per meeting.
- RecurrenceTopUpJob: keeps recurring series generated ahead of time.

Both are scheduled in-process by jobs.scheduler.MeetingScheduler. They can
also be run once from the command line:

    python -m jobs.meeting_jobs reminders
    python -m jobs.meeting_jobs recurrence
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone, timedelta
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from rndvx.database.collections import MEETINGS, RSVPS
from rndvx.enums import MeetingStatus, RecurrenceRule, RsvpStatus

logger = logging.getLogger(__name__)


class ReminderJob:
    """
    Sends one reminder per upcoming meeting.

    Selects CONFIRMED or PENDING_QUORUM meetings starting within the window
    that have no reminderSentAt, emails every RSVP holder who has not said
    NO, then stamps reminderSentAt so later runs skip the meeting.
    """

    REMINDABLE_STATUSES = [
        MeetingStatus.CONFIRMED.value,
        MeetingStatus.PENDING_QUORUM.value,
    ]

    def __init__(self, db: AsyncIOMotorDatabase, notifier, window_hours: int = 24):
        self._meetings_collection = db[MEETINGS]
        self._rsvps_collection = db[RSVPS]
        self._notifier = notifier
        self._window = timedelta(hours=window_hours)

    async def run(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        results = {"meetings": 0, "emailsSent": 0, "errors": []}

        meetings = await self._meetings_collection.find({
            "dateTime": {"$gte": now, "$lte": now + self._window},
            "reminderSentAt": None,
            "status": {"$in": self.REMINDABLE_STATUSES},
        }).to_list(length=None)

        logger.info(f"Reminder sweep found {len(meetings)} meeting(s) due")

        for meeting in meetings:
            try:
                rsvps = await self._rsvps_collection.find(
                    {"meetingId": meeting["_id"], "status": {"$ne": RsvpStatus.NO.value}},
                    {"userId": 1},
                ).to_list(length=None)

                sent = await self._notifier.send_reminders(
                    meeting, [r["userId"] for r in rsvps]
                )

                await self._meetings_collection.update_one(
                    {"_id": meeting["_id"]},
                    {"$set": {"reminderSentAt": now}}
                )

                results["meetings"] += 1
                results["emailsSent"] += sent
            except Exception as e:
                error_msg = f"Reminder for meeting {meeting['_id']} failed: {e}"
                logger.error(error_msg)
                results["errors"].append(error_msg)

        logger.info(
            f"Reminder sweep complete: {results['meetings']} meeting(s), "
            f"{results['emailsSent']} email(s)"
        )
        return results


class RecurrenceTopUpJob:
    """
    Extends recurring series that are about to run out.

    A series needs a top-up when its latest instance (or the parent itself,
    if nothing was generated yet) falls within the lookahead window. New
    instances are generated as the parent's organizer.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        recurrence_service,
        lookahead_days: int = 7,
        batch_size: int = 4,
    ):
        self._meetings_collection = db[MEETINGS]
        self._recurrence = recurrence_service
        self._lookahead = timedelta(days=lookahead_days)
        self._batch_size = batch_size

    async def run(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        horizon = now + self._lookahead
        results = {"seriesChecked": 0, "seriesExtended": 0, "errors": []}

        parents = await self._meetings_collection.find({
            "recurrence": {"$ne": RecurrenceRule.NONE.value},
            "parentMeetingId": None,
            "status": {"$ne": MeetingStatus.CANCELLED.value},
        }).to_list(length=None)

        for parent in parents:
            results["seriesChecked"] += 1
            try:
                latest = await self._recurrence.latest_instance(parent["_id"])
                last_date = latest["dateTime"] if latest else parent["dateTime"]
                if last_date > horizon:
                    continue

                await self._recurrence.generate_instances(
                    str(parent["_id"]),
                    str(parent["organizerId"]),
                    self._batch_size,
                )
                results["seriesExtended"] += 1
            except Exception as e:
                error_msg = f"Recurrence top-up for meeting {parent['_id']} failed: {e}"
                logger.error(error_msg)
                results["errors"].append(error_msg)

        logger.info(
            f"Recurrence top-up complete: {results['seriesExtended']} of "
            f"{results['seriesChecked']} series extended"
        )
        return results


async def main(argv=None) -> int:
    """Run one job once against the configured database."""
    from common.database import MongoDB
    from rndvx.config import settings
    from rndvx.dependencies import get_notifier, init_email_services
    from rndvx.services.meetings import RecurrenceService

    parser = argparse.ArgumentParser(description="Run a meeting background job once")
    parser.add_argument("job", choices=["reminders", "recurrence"])
    args = parser.parse_args(argv)

    mongo = MongoDB(app_name="rndvx-jobs")
    await mongo.connect(settings.MONGODB_URI, settings.MONGODB_DATABASE)

    try:
        if args.job == "reminders":
            init_email_services(mongo.db, settings)
            job = ReminderJob(mongo.db, get_notifier(), settings.REMINDER_WINDOW_HOURS)
        else:
            job = RecurrenceTopUpJob(
                mongo.db,
                RecurrenceService(mongo.db),
                settings.RECURRENCE_LOOKAHEAD_DAYS,
                settings.RECURRENCE_BATCH_SIZE,
            )
        results = await job.run()
    finally:
        await mongo.disconnect()

    return 1 if results["errors"] else 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    sys.exit(asyncio.run(main()))
