"""
Account domain service - Registration, email verification and sign-in.

The service never sees a raw password. Clients submit a key derived from
``email:password`` (see key_derivation) together with the salt used, and the
service stores a bcrypt hash of that key plus the salt.

Verification State Machine (Forward-Only Transitions)
=====================================================

States:
- UNVERIFIED: Initial state after registration (token pending)
- VERIFIED: Terminal state after the verification token is consumed

Transitions:
    UNVERIFIED -> VERIFIED  (valid, unexpired, unconsumed token)

A wrong, consumed or expired token fails without changing state, and all
such failures surface as the same VerificationFailed error.

Note: Token consumption is atomic at the repository level, so a token can
succeed at most once even under concurrent presentation.
"""

import hashlib
import hmac
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache
from datetime import UTC, datetime, timedelta

import bcrypt

from .exceptions import (
    EmailAlreadyRegistered,
    MissingSalt,
    NotificationFailed,
    SchemaViolation,
    VerificationFailed,
)
from .key_derivation import SALT_BYTES, decode_b64, encode_b64
from .ports import AccountRepository, AccountState, AuthResult, VerificationNotifier, VerifyResult

logger = logging.getLogger(__name__)

MIN_KEY_BYTES = 16


@lru_cache
def _dummy_credential_hash(rounds: int) -> str:
    """bcrypt hash at the configured cost, checked when an email is unknown."""
    return bcrypt.hashpw(
        hashlib.sha256(b"dummy_key_for_timing_safety").hexdigest().encode(),
        bcrypt.gensalt(rounds=rounds),
    ).decode()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def validate_salt(salt: str | None) -> str:
    """
    Check that a salt is present and decodes to SALT_BYTES bytes.

    Raises:
        MissingSalt: If the salt is absent, blank, or malformed
    """
    if not isinstance(salt, str) or not salt.strip():
        raise MissingSalt("Salt is required")
    try:
        raw = decode_b64(salt)
    except ValueError:
        raise MissingSalt("Salt must be base64 encoded") from None
    if len(raw) != SALT_BYTES:
        raise MissingSalt(f"Salt must decode to {SALT_BYTES} bytes")
    return salt


def validate_derived_key(derived_key: str | None) -> str:
    """
    Check that a derived key is base64 and at least MIN_KEY_BYTES long.

    Raises:
        SchemaViolation: If the key is absent or malformed
    """
    if not isinstance(derived_key, str) or not derived_key.strip():
        raise SchemaViolation("Derived key is required")
    try:
        raw = decode_b64(derived_key)
    except ValueError:
        raise SchemaViolation("Derived key must be base64 encoded") from None
    if len(raw) < MIN_KEY_BYTES:
        raise SchemaViolation(f"Derived key must decode to at least {MIN_KEY_BYTES} bytes")
    return derived_key


@dataclass(frozen=True)
class AuthConfig:
    """Explicit configuration injected into AuthService."""

    verification_ttl_seconds: int = 3600
    bcrypt_cost: int = 10
    salt_secret: str = "change-me"


@dataclass
class AuthService:
    """
    Domain service for account registration and verification.

    Orchestrates the registration flow: schema checks, email normalization,
    credential hashing, token issuance, persistence and notification.
    """

    repository: AccountRepository
    notifier: VerificationNotifier
    config: AuthConfig = field(default_factory=AuthConfig)
    clock: Callable[[], datetime] = _utcnow

    def register(self, email: str, name: str, derived_key: str, salt: str | None) -> str:
        """
        Register a new UNVERIFIED account and send its verification token.

        Args:
            email: User's email address (will be normalized)
            name: Display name
            derived_key: Base64 key derived client-side from email:password
            salt: Base64 salt the key was derived with (required)

        Returns:
            Normalized email address

        Raises:
            MissingSalt: If the salt is absent or malformed
            SchemaViolation: If the name or derived key is invalid
            EmailAlreadyRegistered: If the email is taken
            NotificationFailed: If the verification email could not be sent
        """
        validate_salt(salt)
        validate_derived_key(derived_key)
        name = name.strip()
        if not name:
            raise SchemaViolation("Name is required")

        normalized_email = self._normalize_email(email)
        credential_hash = self._hash_credential(derived_key)
        token = self._generate_token()

        created = self.repository.create_account(
            normalized_email,
            name,
            credential_hash,
            salt,
            self._hash_token(token),
            self._token_expiry(),
        )
        if not created:
            raise EmailAlreadyRegistered(normalized_email)

        logger.info("Account created: %s", normalized_email)
        self._notify(normalized_email, name, token)
        return normalized_email

    def verify_email(self, token: str) -> str:
        """
        Consume a verification token and mark its account VERIFIED.

        Args:
            token: Token received by email

        Returns:
            Email of the verified account

        Raises:
            VerificationFailed: For any unknown, consumed or expired token
        """
        if not token:
            raise VerificationFailed("Invalid or expired token")

        result, email = self.repository.consume_verification_token(self._hash_token(token))
        if result != VerifyResult.SUCCESS:
            logger.warning("Verification rejected: %s", result.value)
            raise VerificationFailed("Invalid or expired token")

        logger.info("Account verified: %s", email)
        return email

    def authenticate(self, email: str, derived_key: str) -> AuthResult:
        """
        Check a derived key against the stored credential.

        bcrypt always runs, against a dummy hash when the account does not
        exist. NOT_VERIFIED is only reported once the credential matched.
        """
        normalized_email = self._normalize_email(email)
        account = self.repository.get_account(normalized_email)

        if account is not None:
            stored_hash = account.credential_hash
        else:
            stored_hash = _dummy_credential_hash(self.config.bcrypt_cost)
        valid = bcrypt.checkpw(self._prehash(derived_key), stored_hash.encode())

        if account is None or not valid:
            return AuthResult.INVALID_CREDENTIALS
        if account.state != AccountState.VERIFIED:
            return AuthResult.NOT_VERIFIED
        return AuthResult.SUCCESS

    def salt_for(self, email: str) -> str:
        """
        Return the salt a client needs to re-derive its key.

        Unknown emails get a stable decoy salt so the answer does not reveal
        whether an account exists.
        """
        normalized_email = self._normalize_email(email)
        account = self.repository.get_account(normalized_email)
        if account is not None:
            return account.salt

        digest = hmac.new(
            self.config.salt_secret.encode(), normalized_email.encode(), hashlib.sha256
        ).digest()
        return encode_b64(digest[:SALT_BYTES])

    def resend_verification(self, email: str) -> None:
        """
        Issue a replacement token for an UNVERIFIED account and send it.

        Unknown and already verified emails are ignored silently.

        Raises:
            NotificationFailed: If the verification email could not be sent
        """
        normalized_email = self._normalize_email(email)
        account = self.repository.get_account(normalized_email)
        if account is None or account.state != AccountState.UNVERIFIED:
            logger.info("Verification resend ignored")
            return

        token = self._generate_token()
        if not self.repository.replace_verification_token(
            normalized_email, self._hash_token(token), self._token_expiry()
        ):
            return

        self._notify(normalized_email, account.name, token)

    def _notify(self, email: str, name: str, token: str) -> None:
        """Send the token; on failure revoke it and leave the account UNVERIFIED."""
        try:
            self.notifier.send_verification_email(email, name, token)
        except Exception as e:
            logger.warning("Verification email failed for %s: %s", email, e)
            self.repository.replace_verification_token(email, None, None)
            raise NotificationFailed(email) from e
        logger.info("Verification email sent: %s", email)

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()

    def _generate_token(self) -> str:
        """Generate an unguessable URL-safe verification token."""
        return secrets.token_urlsafe(32)

    def _hash_token(self, token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def _token_expiry(self) -> datetime:
        return self.clock() + timedelta(seconds=self.config.verification_ttl_seconds)

    def _prehash(self, derived_key: str) -> bytes:
        # bcrypt only reads 72 bytes; longer derived keys are reduced first
        return hashlib.sha256(derived_key.encode()).hexdigest().encode()

    def _hash_credential(self, derived_key: str) -> str:
        """Hash the derived key using bcrypt with the configured cost factor."""
        return bcrypt.hashpw(
            self._prehash(derived_key), bcrypt.gensalt(rounds=self.config.bcrypt_cost)
        ).decode()
