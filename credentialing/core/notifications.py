"""
Notification collaborators used for out-of-band steps such as credential resets.

Delivery is fire-and-forget from the engines' point of view: failures are
logged here and never raised back into a state transition.
"""
import logging
import smtplib
import socket
import ssl
import time
from email.mime.text import MIMEText
from typing import Callable, Optional

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

# Connection timeout settings
SMTP_TIMEOUT = 30
MAX_RETRIES = 3
RETRY_DELAY = 2


class Notifier:
    """Sends a text message to an account."""

    def send_message(self, account_id: str, text: str) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """
    Records that a message was produced, without its body. Messages can carry
    temporary credentials, which must never reach the log.
    """

    def send_message(self, account_id: str, text: str) -> None:
        logger.info(f"Notification for account {account_id} not delivered: no mail server configured")


class EmailNotifier(Notifier):
    """
    Emails the message to the account's login address over SMTP with STARTTLS.

    Args:
        address_lookup: Callable mapping an account id to its email, or None
        retry_delay: Seconds to wait between attempts
    """

    def __init__(self, address_lookup: Callable[[str], Optional[str]], retry_delay: float = RETRY_DELAY):
        self.address_lookup = address_lookup
        self.retry_delay = retry_delay

    def send_message(self, account_id: str, text: str) -> None:
        email = self.address_lookup(account_id)
        if not email:
            logger.warning(f"No email address on file for account {account_id}; notification not sent")
            return

        msg = MIMEText(text, "plain")
        msg["From"] = settings.mail_from or settings.mail_username
        msg["To"] = email
        msg["Subject"] = "Account notification"

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                logger.info(f"Email send attempt {attempt}/{MAX_RETRIES} to {email}")
                context = ssl.create_default_context()
                with smtplib.SMTP(settings.mail_server, settings.mail_port, timeout=SMTP_TIMEOUT) as server:
                    server.ehlo()
                    server.starttls(context=context)
                    server.ehlo()
                    if settings.mail_username:
                        server.login(settings.mail_username, settings.mail_password or "")
                    server.send_message(msg)
                logger.info(f"Email sent successfully to {email} on attempt {attempt}")
                return

            except (smtplib.SMTPAuthenticationError, smtplib.SMTPRecipientsRefused) as e:
                # Not retryable
                logger.error(f"Email to {email} rejected: {str(e)}")
                return

            except (smtplib.SMTPException, socket.timeout, socket.gaierror, OSError) as e:
                logger.warning(f"SMTP error on attempt {attempt}: {str(e)}")
                if attempt < MAX_RETRIES:
                    time.sleep(self.retry_delay)

        logger.error(f"Failed to email account {account_id} after {MAX_RETRIES} attempts")


def build_notifier(account_store) -> Notifier:
    """Email when an SMTP server is configured, otherwise log."""
    if settings.mail_server:
        def lookup(account_id: str) -> Optional[str]:
            account = account_store.get_account(account_id)
            return account.email if account else None
        return EmailNotifier(lookup)
    return LoggingNotifier()
