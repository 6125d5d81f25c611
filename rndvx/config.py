"""
rndvx application settings.

Extends the base settings with meeting, email and scheduler configuration.
"""

from typing import Optional
from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """rndvx-specific settings."""

    # ==========================================================================
    # Meeting Defaults
    # ==========================================================================
    DEFAULT_MEETING_DURATION: int = 60
    DEFAULT_QUORUM_THRESHOLD: int = 3

    # ==========================================================================
    # Scheduler
    # ==========================================================================
    SCHEDULER_ENABLED: bool = True

    # Meetings starting within this many hours get a reminder
    REMINDER_WINDOW_HOURS: int = 24

    # Recurring series whose latest instance falls within this window get topped up
    RECURRENCE_LOOKAHEAD_DAYS: int = 7
    RECURRENCE_BATCH_SIZE: int = 4

    # ==========================================================================
    # Email Settings
    # ==========================================================================
    EMAIL_MODE: str = "console"  # console, smtp, resend
    RESEND_API_KEY: Optional[str] = None
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 465
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: str = "noreply@rndvx.app"
    SMTP_FROM_NAME: str = "rndvx"

    # ==========================================================================
    # Frontend URL (for email links)
    # ==========================================================================
    APP_URL: str = "http://localhost:5173"


# Global settings instance
settings = Settings()
