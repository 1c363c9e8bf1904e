"""
Send-once guard for the skip-version notification.
"""

import logging
import threading

from mailer import MailError

logger = logging.getLogger(__name__)


class NotificationGate:
    """Sends a notification at most once for the lifetime of this object.

    The flag is only set after a successful send, so a failed send can be
    retried by a later call.
    """

    def __init__(self, mailer):
        self.mailer = mailer
        self._sent = False
        self._lock = threading.Lock()

    @property
    def sent(self) -> bool:
        with self._lock:
            return self._sent

    def notify_once(self, recipient: str, subject: str, body: str, sender: str = None) -> bool:
        """Send the message unless one was already sent. Returns True if sent now."""
        with self._lock:
            if self._sent:
                logger.debug("Skip-version notification already sent, not sending again")
                return False

            try:
                self.mailer.send(sender or recipient, recipient, subject, body)
            except (MailError, OSError) as e:
                logger.error(f"Failed to send skip-version notification to {recipient}: {e}")
                return False

            self._sent = True

        logger.info(f"Sent skip-version notification to {recipient}")
        return True
