"""
Domain layer - Pure business logic with zero framework imports.

This package contains the credential derivation contract and the account
verification state machine. It defines its own port interfaces for
infrastructure abstraction, keeping web, database and mail concerns in
the adapters.
"""

from .accounts import AuthConfig, AuthService
from .exceptions import (
    DerivationError,
    EmailAlreadyRegistered,
    KeywardError,
    MissingSalt,
    NotificationFailed,
    RegistrationError,
    SchemaViolation,
    ServiceError,
    VerificationFailed,
)
from .key_derivation import DerivedCredential, KeyDeriver
from .ports import (
    Account,
    AccountRepository,
    AccountState,
    AuthResult,
    VerificationNotifier,
    VerifyResult,
)

__all__ = [
    "Account",
    "AccountRepository",
    "AccountState",
    "AuthConfig",
    "AuthResult",
    "AuthService",
    "DerivationError",
    "DerivedCredential",
    "EmailAlreadyRegistered",
    "KeyDeriver",
    "KeywardError",
    "MissingSalt",
    "NotificationFailed",
    "RegistrationError",
    "SchemaViolation",
    "ServiceError",
    "VerificationFailed",
    "VerificationNotifier",
    "VerifyResult",
]
