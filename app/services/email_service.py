"""
app/services/email_service.py

Purpose: SendGrid email delivery

- Sends HTML emails with file attachments
- Reports failures to the caller instead of retrying
"""

import asyncio
import base64
from typing import List, Optional, Tuple

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import (
    Attachment,
    Disposition,
    FileContent,
    FileName,
    FileType,
    Mail,
)

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# (filename, content, mime type)
EmailAttachment = Tuple[str, bytes, str]


class EmailService:
    """Service for sending emails via SendGrid"""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        self.api_key = api_key or settings.SENDGRID_API_KEY
        self.from_email = from_email or settings.EMAIL_FROM

        if not self.api_key:
            logger.warning("SENDGRID_API_KEY not set - emails will not be sent")
            self.client = None
        else:
            self.client = SendGridAPIClient(self.api_key)

    def _build_message(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        attachments: List[EmailAttachment]
    ) -> Mail:
        message = Mail(
            from_email=self.from_email,
            to_emails=to_email,
            subject=subject,
            html_content=html_content
        )
        for filename, content, mime_type in attachments:
            message.add_attachment(Attachment(
                FileContent(base64.b64encode(content).decode("ascii")),
                FileName(filename),
                FileType(mime_type),
                Disposition("attachment")
            ))
        return message

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        attachments: Optional[List[EmailAttachment]] = None
    ) -> bool:
        """
        Send an email.

        Returns:
            True if SendGrid accepted the message, False otherwise
        """
        if not self.client:
            logger.error("Cannot send email - SendGrid not configured")
            return False

        message = self._build_message(to_email, subject, html_content, attachments or [])

        try:
            response = await asyncio.to_thread(self.client.send, message)
        except HTTPError as e:
            logger.error(f"SendGrid error: {e.status_code} - {e.body}")
            return False

        if response.status_code in [200, 201, 202]:
            logger.info(f"Email sent: {subject}")
            return True

        logger.error(f"SendGrid unexpected status: {response.status_code}")
        return False


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
