"""Email delivery for ledger reports."""
import asyncio
import logging
import smtplib
from email.mime.text import MIMEText

from ..config import EmailConfig

logger = logging.getLogger(__name__)


class EmailNotifier:
    """Mail reports to a single recipient over STARTTLS."""

    def __init__(self, config: EmailConfig) -> None:
        self.alert_email = config.alert_email
        self.smtp_server = config.smtp_server
        self.smtp_port = config.smtp_port
        self.sender_email = config.sender_email
        self.sender_password = config.sender_password

    def _deliver(self, message: str, subject: str) -> None:
        msg = MIMEText(message, "plain", "utf-8")
        msg["From"] = self.sender_email
        msg["To"] = self.alert_email
        msg["Subject"] = subject or "Yield ledger report"

        with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
            server.starttls()
            server.login(self.sender_email, self.sender_password)
            server.send_message(msg)

    async def send_alert(self, message: str, subject: str = "") -> bool:
        if not self.alert_email:
            logger.debug("No report recipient configured, skipping email")
            return False
        if not self.sender_email or not self.sender_password:
            logger.warning("Email credentials not configured")
            return False

        try:
            await asyncio.to_thread(self._deliver, message, subject)
        except (OSError, smtplib.SMTPException) as e:
            logger.error("Failed to send report email: %s", e)
            return False
        logger.info("Report emailed to %s", self.alert_email)
        return True

    async def send_log(self, message: str, silent: bool = True) -> bool:
        """Event digests go to chat channels only."""
        return False
