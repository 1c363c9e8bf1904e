"""
Outbound mail over SMTP.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import config

logger = logging.getLogger(__name__)


class MailError(Exception):
    """Raised when a message could not be delivered to the SMTP server."""


class SMTPMailer:
    """Sends HTML mail through an SMTP relay."""

    def __init__(self, host: str, port: int = 25, username: str = '', password: str = '',
                 use_tls: bool = False, timeout: int = 10):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send(self, sender: str, recipient: str, subject: str, html_body: str) -> None:
        """Send one HTML message. Raises MailError on failure."""
        msg = MIMEMultipart('alternative')
        msg['From'] = sender
        msg['To'] = recipient
        msg['Subject'] = subject
        msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(sender, [recipient], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(f"Could not send mail to {recipient} via {self.host}:{self.port}: {e}") from e

        logger.info(f"Sent mail '{subject}' to {recipient}")


def get_mailer() -> SMTPMailer:
    """Build a mailer from configuration."""
    return SMTPMailer(
        host=config.SMTP_HOST,
        port=config.SMTP_PORT,
        username=config.SMTP_USERNAME,
        password=config.SMTP_PASSWORD,
        use_tls=config.SMTP_USE_TLS,
        timeout=config.SMTP_TIMEOUT,
    )
