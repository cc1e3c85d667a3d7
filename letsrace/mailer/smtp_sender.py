"""
SMTP email sender
"""

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.header import Header
from dataclasses import dataclass
from typing import Optional

import aiosmtplib

from ..config import settings
from ..errors import TransportError

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """Send outcome"""
    recipient: str
    success: bool
    error_message: Optional[str] = None

    def raise_for_status(self) -> None:
        if not self.success:
            raise TransportError(self.error_message or f"Failed to send to {self.recipient}")


class MailSender:
    """SMTP mail transport (STARTTLS)"""

    def __init__(
        self,
        host: str = None,
        port: int = None,
        username: str = None,
        password: str = None,
        from_address: str = None,
        from_name: str = None
    ):
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username or settings.smtp_username
        self.password = password or settings.smtp_password
        self.from_address = from_address or settings.mail_from_address
        self.from_name = from_name or settings.mail_from_name

        if not self.is_configured:
            logger.warning(
                "SMTP is not configured. "
                "Set SMTP_USERNAME and SMTP_PASSWORD in .env."
            )

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    def _build_message(self, recipient: str, subject: str, html_content: str) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = Header(subject, "utf-8")
        message["From"] = f"{self.from_name} <{self.from_address}>"
        message["To"] = recipient
        message.attach(MIMEText(html_content, "html", "utf-8"))
        return message

    def send(self, recipient: str, subject: str, html_content: str) -> SendResult:
        """
        Send one email (sync)

        Args:
            recipient: recipient address
            subject: subject line
            html_content: HTML body

        Returns:
            SendResult
        """
        if not self.is_configured:
            return SendResult(
                recipient=recipient,
                success=False,
                error_message="SMTP is not configured."
            )

        try:
            message = self._build_message(recipient, subject, html_content)

            with smtplib.SMTP(self.host, self.port) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.sendmail(self.from_address, recipient, message.as_string())

            logger.info(f"Email sent: {recipient}")
            return SendResult(recipient=recipient, success=True)

        except smtplib.SMTPAuthenticationError:
            error_msg = "SMTP authentication failed. Check SMTP_USERNAME / SMTP_PASSWORD."
            logger.error(f"Email send failed: {error_msg}")
            return SendResult(recipient=recipient, success=False, error_message=error_msg)

        except smtplib.SMTPRecipientsRefused:
            error_msg = f"Recipient refused: {recipient}"
            logger.error(f"Email send failed: {error_msg}")
            return SendResult(recipient=recipient, success=False, error_message=error_msg)

        except (smtplib.SMTPException, OSError) as e:
            error_msg = str(e) or e.__class__.__name__
            logger.error(f"Email send failed: {error_msg}")
            return SendResult(recipient=recipient, success=False, error_message=error_msg)

    async def send_async(self, recipient: str, subject: str, html_content: str) -> SendResult:
        """Send one email (async)"""
        if not self.is_configured:
            return SendResult(
                recipient=recipient,
                success=False,
                error_message="SMTP is not configured."
            )

        try:
            message = self._build_message(recipient, subject, html_content)

            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                start_tls=True,
                username=self.username,
                password=self.password,
            )

            logger.info(f"Email sent: {recipient}")
            return SendResult(recipient=recipient, success=True)

        except (aiosmtplib.SMTPException, OSError) as e:
            error_msg = str(e) or e.__class__.__name__
            logger.error(f"Email send failed ({recipient}): {error_msg}")
            return SendResult(recipient=recipient, success=False, error_message=error_msg)


_sender: Optional[MailSender] = None


def get_sender() -> MailSender:
    """Shared sender instance"""
    global _sender
    if _sender is None:
        _sender = MailSender()
    return _sender
