"""
In-process scheduler for meeting jobs.

Wraps an APScheduler AsyncIOScheduler with two cron jobs:
- Reminder sweep at minute 0 of every hour
- Recurrence top-up daily at midnight (UTC)

Owned by the application lifespan: started after services are initialized
and stopped on shutdown.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from motor.motor_asyncio import AsyncIOMotorDatabase

from jobs.meeting_jobs import ReminderJob, RecurrenceTopUpJob

logger = logging.getLogger(__name__)


class MeetingScheduler:
    """
    Schedules the reminder sweep and recurrence top-up.

    Args:
        db: MongoDB database connection
        notifier: MeetingNotifier used for reminder emails
        recurrence_service: RecurrenceService used to extend series
        settings: Settings with REMINDER_WINDOW_HOURS,
            RECURRENCE_LOOKAHEAD_DAYS and RECURRENCE_BATCH_SIZE
    """

    REMINDER_JOB_ID = "meeting_reminders"
    RECURRENCE_JOB_ID = "recurrence_top_up"

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        notifier,
        recurrence_service,
        settings,
    ):
        self._reminder_job = ReminderJob(
            db, notifier, window_hours=settings.REMINDER_WINDOW_HOURS
        )
        self._recurrence_job = RecurrenceTopUpJob(
            db,
            recurrence_service,
            lookahead_days=settings.RECURRENCE_LOOKAHEAD_DAYS,
            batch_size=settings.RECURRENCE_BATCH_SIZE,
        )
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Register the cron jobs and start the scheduler. Idempotent."""
        if self.running:
            return

        self._scheduler = AsyncIOScheduler(timezone="UTC")

        self._scheduler.add_job(
            self.send_reminders,
            trigger=CronTrigger(minute=0, timezone="UTC"),
            id=self.REMINDER_JOB_ID,
            name="Meeting reminder sweep",
            misfire_grace_time=600,
            coalesce=True,
        )

        self._scheduler.add_job(
            self.top_up_recurrences,
            trigger=CronTrigger(hour=0, minute=0, timezone="UTC"),
            id=self.RECURRENCE_JOB_ID,
            name="Recurring meeting top-up",
            misfire_grace_time=3600,
            coalesce=True,
        )

        self._scheduler.start()
        logger.info("Meeting scheduler started (reminders hourly, recurrence daily)")

    def stop(self) -> None:
        """Stop the scheduler without waiting for running jobs."""
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Meeting scheduler stopped")

    async def send_reminders(self) -> None:
        try:
            await self._reminder_job.run()
        except Exception as e:
            logger.error(f"Reminder sweep failed: {e}")

    async def top_up_recurrences(self) -> None:
        try:
            await self._recurrence_job.run()
        except Exception as e:
            logger.error(f"Recurrence top-up failed: {e}")
