"""Email services."""

from rndvx.services.email.email_service import EmailService
from rndvx.services.email.notifier import MeetingNotifier, describe_target

__all__ = ["EmailService", "MeetingNotifier", "describe_target"]
