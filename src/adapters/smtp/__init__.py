"""Notifier adapters - Verification email delivery."""

from .console import ConsoleVerificationNotifier
from .sender import SmtpVerificationNotifier

__all__ = ["ConsoleVerificationNotifier", "SmtpVerificationNotifier"]
