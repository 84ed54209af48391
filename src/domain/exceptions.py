"""
Domain exceptions - Semantic error types for credential handling.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
"""


class KeywardError(Exception):
    """Base class for all keyward domain errors."""

    pass


class DerivationError(KeywardError):
    """Key derivation failed (bad digest, iteration count, key length...)."""

    pass


class RegistrationError(KeywardError):
    """Base class for registration domain errors."""

    pass


class SchemaViolation(RegistrationError):
    """Registration request is structurally invalid."""

    pass


class MissingSalt(SchemaViolation):
    """Registration request carries no usable salt."""

    pass


class EmailAlreadyRegistered(RegistrationError):
    """Email belongs to a verified account or one with a pending token."""

    pass


class NotificationFailed(RegistrationError):
    """Verification email could not be dispatched."""

    pass


class VerificationFailed(KeywardError):
    """Token is unknown, already consumed, or expired."""

    pass


class ServiceError(KeywardError):
    """AuthService rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
