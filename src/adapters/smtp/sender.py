"""
SMTP notifier adapter - Implements VerificationNotifier protocol.

Delivers the verification link by email through an SMTP relay.
"""

import logging
import smtplib
from email.message import EmailMessage

from src.adapters.smtp.console import verification_link
from src.domain.exceptions import NotificationFailed

logger = logging.getLogger(__name__)

_BODY = """Hello {name},

Thanks for signing up. Please confirm your email address by opening the link below:

{link}

If you did not create an account, you can ignore this message.
"""


class SmtpVerificationNotifier:
    """
    Implements VerificationNotifier protocol via smtplib.

    A new SMTP connection is opened per message; delivery failures are raised
    as NotificationFailed so registration never reports success without mail.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        verification_url: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._verification_url = verification_url
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def build_message(self, email: str, name: str, token: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = "Verify your email address"
        message["From"] = self._sender
        message["To"] = email
        message.set_content(
            _BODY.format(name=name, link=verification_link(self._verification_url, token))
        )
        return message

    def send_verification_email(self, email: str, name: str, token: str) -> None:
        message = self.build_message(email, name, token)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls()
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed: %s", email, e)
            raise NotificationFailed(email) from e

        logger.info("Verification email delivered to %s", email)
