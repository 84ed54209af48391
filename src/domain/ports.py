"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class AccountState(str, Enum):
    """
    Account verification states.

    State Transitions (forward-only):
    - UNVERIFIED -> VERIFIED (verification token consumed)

    A failed token presentation never changes state.
    """

    UNVERIFIED = "UNVERIFIED"
    VERIFIED = "VERIFIED"


class VerifyResult(Enum):
    """
    Result of a verification token presentation.

    Used by consume_verification_token() to indicate success or failure reason.
    """

    SUCCESS = "success"
    INVALID_TOKEN = "invalid_token"
    EXPIRED = "expired"


class AuthResult(Enum):
    """Result of an authentication attempt."""

    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    NOT_VERIFIED = "not_verified"


@dataclass(frozen=True)
class Account:
    """Stored account. ``credential_hash`` is a bcrypt hash of the derived key."""

    email: str
    name: str
    credential_hash: str
    salt: str
    state: AccountState
    created_at: datetime
    verified_at: datetime | None = None


class AccountRepository(Protocol):
    """Port interface for account persistence."""

    def create_account(
        self,
        email: str,
        name: str,
        credential_hash: str,
        salt: str,
        token_hash: str,
        token_expires_at: datetime,
    ) -> bool:
        """
        Atomically create an UNVERIFIED account with a pending token.

        An existing UNVERIFIED account whose token is expired or revoked
        may be replaced. VERIFIED accounts and accounts holding a live
        token are never overwritten.

        Args:
            email: Normalized email address
            name: Display name
            credential_hash: bcrypt hash of the derived key
            salt: Base64 salt the key was derived with (required)
            token_hash: SHA-256 hex digest of the verification token
            token_expires_at: Token expiry (timezone-aware UTC)

        Returns:
            True if the account was created, False if the email is taken
        """
        ...

    def get_account(self, email: str) -> Account | None:
        """Fetch an account by normalized email."""
        ...

    def replace_verification_token(
        self, email: str, token_hash: str | None, token_expires_at: datetime | None
    ) -> bool:
        """
        Replace (or revoke, with None) the token of an UNVERIFIED account.

        Returns:
            True if an UNVERIFIED account was updated
        """
        ...

    def consume_verification_token(self, token_hash: str) -> tuple[VerifyResult, str | None]:
        """
        Atomically consume a verification token.

        On SUCCESS the account transitions UNVERIFIED -> VERIFIED and the
        token is cleared in the same operation, so it can succeed only once.

        Args:
            token_hash: SHA-256 hex digest of the presented token

        Returns:
            (VerifyResult, email of the account or None)
        """
        ...


class VerificationNotifier(Protocol):
    """Port interface for out-of-band verification token delivery."""

    def send_verification_email(self, email: str, name: str, token: str) -> None:
        """
        Deliver the verification token to the user.

        Raises:
            Exception: Any failure; the caller treats it as NotificationFailed
        """
        ...
