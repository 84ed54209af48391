"""
Client layer - Registration and sign-in from the user's side.

Passwords stay in this layer: they are validated, turned into a derived
key, and dropped. Only the derived key and its salt reach the service.
"""

from .gateway import AuthGateway, HttpAuthGateway, SignUpPayload
from .submitter import OutcomeStatus, RegistrationSubmitter, SignInSubmitter, SubmissionOutcome

__all__ = [
    "AuthGateway",
    "HttpAuthGateway",
    "OutcomeStatus",
    "RegistrationSubmitter",
    "SignInSubmitter",
    "SignUpPayload",
    "SubmissionOutcome",
]
