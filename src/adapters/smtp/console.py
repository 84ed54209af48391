"""
Console notifier adapter - Implements VerificationNotifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging verification tokens for development use.
"""

import logging
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


def verification_link(base_url: str, token: str) -> str:
    """Build the link a user follows to verify their email."""
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'token': token})}"


class ConsoleVerificationNotifier:
    """
    Implements VerificationNotifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints verification tokens to the log.
    """

    def __init__(self, verification_url: str | None = None) -> None:
        self._verification_url = verification_url

    def send_verification_email(self, email: str, name: str, token: str) -> None:
        """
        Log verification token to console (simulates email delivery).

        The token is logged at INFO level to be visible in container logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            name: Recipient display name
            token: Verification token
        """
        logger.info("[VERIFICATION] Email: %s Name: %s Token: %s", email, name, token)
        if self._verification_url:
            logger.info(
                "[VERIFICATION] Link: %s", verification_link(self._verification_url, token)
            )
