"""
Email service for sending transactional emails.

Supports SMTP, Resend API, and console logging modes.
"""

import os
import logging
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Optional

import httpx
import aiosmtplib

from config.email_config import (
    RESEND_API_URL,
    EMAIL_DEFAULTS,
    EMAIL_SUBJECTS,
)

logger = logging.getLogger(__name__)


def _format_when(value: datetime) -> str:
    return value.strftime("%A, %B %d, %Y at %H:%M %Z").strip()


class EmailService:
    """
    Email service with multi-mode support.

    Modes:
        - console: Log emails to console (development)
        - smtp: Send via SMTP
        - resend: Send via Resend HTTP API

    Every public send method returns a result dict instead of raising, so a
    failed delivery never interrupts the caller.
    """

    def __init__(
        self,
        mode: Optional[str] = None,
        resend_api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        team_name: Optional[str] = None,
        app_url: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
    ):
        """
        Initialize email service.

        Args:
            mode: "console", "smtp", or "resend" (default from EMAIL_MODE env var)
            resend_api_key: Resend API key (default from RESEND_API_KEY env var)
            from_email: Sender email address
            from_name: Sender display name
            team_name: Team name for email signatures
            app_url: Base URL for frontend links in emails
            smtp_host: SMTP server host
            smtp_port: SMTP server port
            smtp_user: SMTP username
            smtp_password: SMTP password
        """
        self._mode = mode or os.environ.get("EMAIL_MODE", EMAIL_DEFAULTS["mode"])
        self._from_email = from_email or os.environ.get("SMTP_FROM_EMAIL", EMAIL_DEFAULTS["from_email"])
        self._from_name = from_name or os.environ.get("SMTP_FROM_NAME", EMAIL_DEFAULTS["from_name"])
        self._team_name = team_name or os.environ.get("EMAIL_TEAM_NAME", EMAIL_DEFAULTS["team_name"])
        self._app_url = app_url or os.environ.get("APP_URL", "http://localhost:5173")

        self._resend_api_key = resend_api_key or os.environ.get("RESEND_API_KEY")

        self._smtp_host = smtp_host or os.environ.get("SMTP_HOST")
        self._smtp_port = smtp_port or int(os.environ.get("SMTP_PORT", "465"))
        self._smtp_user = smtp_user or os.environ.get("SMTP_USER")
        self._smtp_password = smtp_password or os.environ.get("SMTP_PASSWORD")

        if self._mode == "resend" and not self._resend_api_key:
            logger.warning("Resend API key not configured, falling back to console mode")
            self._mode = "console"
        elif self._mode == "smtp" and not self._smtp_host:
            logger.warning("SMTP host not configured, falling back to console mode")
            self._mode = "console"

        logger.info(f"Email service initialized in {self._mode} mode")

    @property
    def mode(self) -> str:
        return self._mode

    def _render(self, heading: str, lines: list, link: Optional[str] = None) -> tuple:
        """Build (html, text) bodies from a heading and paragraph lines."""
        paragraphs = "".join(f"<p>{escape(line)}</p>" for line in lines)
        button = ""
        if link:
            button = (
                f'<p><a href="{escape(link)}" style="background:#4f46e5;color:#fff;'
                f'padding:10px 18px;border-radius:6px;text-decoration:none;">Open rndvx</a></p>'
            )

        html = f"""
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: Arial, Helvetica, sans-serif; color: #1f2937;">
    <h2>{escape(heading)}</h2>
    {paragraphs}
    {button}
    <p style="color:#6b7280;">{escape(self._team_name)}</p>
</body>
</html>
"""
        text_parts = [heading, ""] + list(lines)
        if link:
            text_parts += ["", link]
        text_parts += ["", self._team_name]
        return html, "\n".join(text_parts)

    async def send_meeting_created(
        self,
        to_email: str,
        meeting_title: str,
        meeting_datetime: datetime,
    ) -> dict:
        """Tell an organizer their meeting was created."""
        html, text = self._render(
            "Your meeting is set up",
            [
                f"\"{meeting_title}\" is scheduled for {_format_when(meeting_datetime)}.",
                "Invite participants so they can RSVP. The meeting confirms once enough people say yes.",
            ],
            f"{self._app_url}/meetings",
        )
        subject = EMAIL_SUBJECTS["meeting_created"].format(title=meeting_title)
        return await self._send(to_email, subject, html, text)

    async def send_rsvp_confirmation(
        self,
        to_email: str,
        meeting_title: str,
        rsvp_status: str,
    ) -> dict:
        """Confirm the RSVP a user just recorded."""
        html, text = self._render(
            "RSVP recorded",
            [f"Your response to \"{meeting_title}\" is now: {rsvp_status}."],
        )
        subject = EMAIL_SUBJECTS["rsvp_confirmation"].format(title=meeting_title)
        return await self._send(to_email, subject, html, text)

    async def send_meeting_confirmed(
        self,
        to_email: str,
        meeting_title: str,
        meeting_datetime: datetime,
    ) -> dict:
        """Announce that a meeting reached quorum."""
        html, text = self._render(
            "It's happening!",
            [
                f"\"{meeting_title}\" reached quorum and is confirmed.",
                f"See you on {_format_when(meeting_datetime)}.",
            ],
            f"{self._app_url}/meetings",
        )
        subject = EMAIL_SUBJECTS["meeting_confirmed"].format(title=meeting_title)
        return await self._send(to_email, subject, html, text)

    async def send_meeting_cancelled(
        self,
        to_email: str,
        meeting_title: str,
    ) -> dict:
        """Tell an attendee a meeting was removed by its organizer."""
        html, text = self._render(
            "Meeting cancelled",
            [f"The organizer cancelled \"{meeting_title}\"."],
        )
        subject = EMAIL_SUBJECTS["meeting_cancelled"].format(title=meeting_title)
        return await self._send(to_email, subject, html, text)

    async def send_meeting_reminder(
        self,
        to_email: str,
        meeting_title: str,
        meeting_datetime: datetime,
    ) -> dict:
        """Remind an attendee about an upcoming meeting."""
        html, text = self._render(
            "Coming up soon",
            [f"\"{meeting_title}\" starts {_format_when(meeting_datetime)}."],
            f"{self._app_url}/meetings",
        )
        subject = EMAIL_SUBJECTS["meeting_reminder"].format(title=meeting_title)
        return await self._send(to_email, subject, html, text)

    async def send_invitation(
        self,
        to_email: str,
        token: str,
        sender_name: str,
        target_name: str,
        expires_at: Optional[datetime] = None,
    ) -> dict:
        """Send an invite link for a group or meeting."""
        lines = [f"{sender_name} invited you to join {target_name}."]
        if expires_at:
            lines.append(f"This invite expires on {expires_at.strftime('%B %d, %Y')}.")

        html, text = self._render(
            "You're invited",
            lines,
            f"{self._app_url}/invites/{token}",
        )
        subject = EMAIL_SUBJECTS["invitation"].format(title=target_name)
        return await self._send(to_email, subject, html, text)

    async def _send(
        self,
        to: str,
        subject: str,
        html: str,
        text: str,
    ) -> dict:
        """
        Send email via configured provider.

        Args:
            to: Recipient email
            subject: Email subject
            html: HTML content
            text: Plain text content

        Returns:
            dict with success status and details
        """
        if self._mode == "console":
            return self._send_console(to, subject, html, text)
        elif self._mode == "smtp":
            return await self._send_smtp(to, subject, html, text)
        elif self._mode == "resend":
            return await self._send_resend(to, subject, html, text)
        else:
            logger.error(f"Unknown email mode: {self._mode}")
            return {"success": False, "error": f"Unknown email mode: {self._mode}"}

    def _send_console(
        self,
        to: str,
        subject: str,
        html: str,
        text: str,
    ) -> dict:
        """Log email to console (development mode)."""
        logger.info("=" * 60)
        logger.info("EMAIL (console mode)")
        logger.info(f"To: {to}")
        logger.info(f"Subject: {subject}")
        logger.info("-" * 60)
        logger.info(text)
        logger.info("=" * 60)

        return {
            "success": True,
            "mode": "console",
            "message": "Email logged to console",
        }

    async def _send_smtp(
        self,
        to: str,
        subject: str,
        html: str,
        text: str,
    ) -> dict:
        """Send email via SMTP."""
        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = f"{self._from_name} <{self._from_email}>"
            message["To"] = to

            message.attach(MIMEText(text, "plain"))
            message.attach(MIMEText(html, "html"))

            # Port 465 is implicit TLS, anything else negotiates STARTTLS
            use_tls = self._smtp_port == 465

            await aiosmtplib.send(
                message,
                hostname=self._smtp_host,
                port=self._smtp_port,
                username=self._smtp_user,
                password=self._smtp_password,
                use_tls=use_tls,
                start_tls=not use_tls,
            )

            logger.info(f"Email sent via SMTP to {to}")
            return {
                "success": True,
                "mode": "smtp",
                "message": "Email sent via SMTP",
            }

        except Exception as e:
            logger.error(f"Failed to send email via SMTP: {e}")
            return {
                "success": False,
                "error": str(e),
            }

    async def _send_resend(
        self,
        to: str,
        subject: str,
        html: str,
        text: str,
    ) -> dict:
        """Send email via Resend API."""
        async with httpx.AsyncClient(timeout=10.0) as client:
            try:
                response = await client.post(
                    RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {self._resend_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": f"{self._from_name} <{self._from_email}>",
                        "to": [to],
                        "subject": subject,
                        "html": html,
                        "text": text,
                    },
                )

                if response.status_code == 200:
                    data = response.json()
                    return {
                        "success": True,
                        "mode": "resend",
                        "messageId": data.get("id"),
                    }

                error_msg = response.json().get("message", "Unknown error")
                logger.error(f"Resend API error: {error_msg}")
                return {
                    "success": False,
                    "error": error_msg,
                }

            except Exception as e:
                logger.error(f"Failed to send email via Resend: {e}")
                return {
                    "success": False,
                    "error": str(e),
                }
