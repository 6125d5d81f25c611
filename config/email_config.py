"""
Email service configuration constants.

These are fixed values that don't change per environment.
Environment-specific values (API keys, URLs) are loaded from env vars.
"""

# Resend API endpoint
RESEND_API_URL = "https://api.resend.com/emails"

# Default values (can be overridden by env vars)
EMAIL_DEFAULTS = {
    "mode": "console",
    "from_name": "rndvx",
    "from_email": "noreply@rndvx.app",
    "team_name": "The rndvx Team",
}

# Subject line templates, formatted with the meeting title
EMAIL_SUBJECTS = {
    "meeting_created": "Your meeting \"{title}\" was created",
    "rsvp_confirmation": "RSVP recorded for \"{title}\"",
    "meeting_confirmed": "\"{title}\" is confirmed",
    "meeting_cancelled": "\"{title}\" was cancelled",
    "meeting_reminder": "Reminder: \"{title}\" is coming up",
    "invitation": "You're invited to {title}",
}
