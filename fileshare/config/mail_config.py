"""
Mail Configuration

SendGrid credentials for share-link emails.
"""

import os


class MailConfig:
    """SendGrid settings; email is disabled when no API key is set."""

    def __init__(self):
        self.sendgrid_api_key = os.getenv("SENDGRID_API_KEY")
        self.from_email = os.getenv("SENDGRID_FROM_EMAIL", "noreply@fileshare.local")
        self.from_name = os.getenv("MAIL_FROM_NAME", "FileShare")

    @property
    def enabled(self) -> bool:
        return bool(self.sendgrid_api_key)
