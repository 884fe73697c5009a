"""
SendGrid Notifier

FileNotifier implementation delivering share-link and upload-confirmation
emails through the SendGrid API.
"""

import html
import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Email, HtmlContent, Mail, To

from fileshare.domain.notifications import FileNotifier, ShareLink

logger = logging.getLogger(__name__)

ACCEPTED_STATUS_CODES = (200, 201, 202)


class SendGridNotifier(FileNotifier):
    """Sends share-link emails via SendGrid; without an API key nothing is sent."""

    def __init__(
        self,
        api_key: Optional[str],
        from_email: str,
        from_name: str = "FileShare",
        client: Optional[SendGridAPIClient] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    @property
    def client(self) -> SendGridAPIClient:
        if self._client is None:
            self._client = SendGridAPIClient(self.api_key)
        return self._client

    def send_file_link(
        self, link: ShareLink, recipient_email: str, sender_email: Optional[str] = None
    ) -> bool:
        subject = f"File shared with you: {link.file_name}"
        return self._send(recipient_email, subject, render_file_share(link, sender_email))

    def send_upload_confirmation(self, link: ShareLink, recipient_email: str) -> bool:
        subject = f"File uploaded successfully: {link.file_name}"
        return self._send(recipient_email, subject, render_upload_confirmation(link))

    def _send(self, to_email: str, subject: str, html_content: str) -> bool:
        if not self.is_configured:
            logger.warning(f"SendGrid not configured, skipping email to {to_email}")
            return False

        message = Mail(
            from_email=Email(self.from_email, self.from_name),
            to_emails=To(to_email),
            subject=subject,
            html_content=HtmlContent(html_content),
        )

        try:
            response = self.client.send(message)
        except Exception as e:
            logger.error(f"SendGrid error sending to {to_email}: {e}")
            return False

        if response.status_code not in ACCEPTED_STATUS_CODES:
            logger.error(f"SendGrid rejected email to {to_email}: HTTP {response.status_code}")
            return False

        logger.info(f"Email '{subject}' sent to {to_email}")
        return True


def _file_details(link: ShareLink) -> str:
    return f"""
        <table cellpadding="6" style="background:#ffffff;border-left:4px solid #667eea;">
            <tr><td><strong>File</strong></td><td>{html.escape(link.file_name)}</td></tr>
            <tr><td><strong>Size</strong></td><td>{link.file_size_formatted}</td></tr>
            <tr><td><strong>Expires</strong></td><td>{link.expires_at.strftime("%Y-%m-%d %H:%M UTC")}</td></tr>
        </table>"""


def render_file_share(link: ShareLink, sender_email: Optional[str] = None) -> str:
    """HTML body for a share-link email."""
    sender = (
        f"<p>{html.escape(sender_email)} has shared a file with you.</p>"
        if sender_email
        else "<p>Someone has shared a file with you.</p>"
    )
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>File Shared with You</title></head>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
    <h1>File Shared with You</h1>
    {sender}
    {_file_details(link)}
    <p><a href="{html.escape(link.download_url, quote=True)}"
          style="display:inline-block;background:#667eea;color:#fff;padding:15px 30px;text-decoration:none;border-radius:5px;">
        Download File</a></p>
    <p style="background:#fff3cd;color:#856404;padding:15px;">
        This link expires at the time shown above and allows at most
        {link.max_downloads} downloads ({link.download_count} used so far).
    </p>
</body>
</html>"""


def render_upload_confirmation(link: ShareLink) -> str:
    """HTML body for the uploader's confirmation email."""
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Upload Successful</title></head>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
    <h1>Upload Successful</h1>
    <p>Your file is ready to share.</p>
    {_file_details(link)}
    <p>Share link: <a href="{html.escape(link.download_url, quote=True)}">{html.escape(link.download_url)}</a></p>
</body>
</html>"""
