"""
Key derivation - Client-side credential derivation.

The raw password never leaves the client. Instead, a slow salted PBKDF2
derivation over ``email:password`` produces a fixed-length key that is
transmitted and stored in place of the password.

Derivation Contract
===================

- A fresh 16-byte random salt is generated on every registration derivation.
  Callers cannot supply one, so no two registrations share a salt.
- The PRF input is ``f"{email}:{password}"``, binding the key to the identity.
- The salt is fed to PBKDF2 as its base64 text. The transported salt string
  is therefore all a verifier needs to re-derive the exact same key.
- Both key and salt travel as standard base64 and decode losslessly.
"""

import asyncio
import base64
import binascii
import hashlib
import secrets
from dataclasses import dataclass

from .exceptions import DerivationError

SALT_BYTES = 16
DEFAULT_ITERATIONS = 10000
DEFAULT_KEY_LENGTH = 32
DEFAULT_DIGEST = "sha256"


@dataclass(frozen=True)
class DerivedCredential:
    """Base64 encoded derived key and the salt it was derived with."""

    key: str
    salt: str


def encode_b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def decode_b64(text: str) -> bytes:
    """
    Strictly decode standard base64 text.

    Raises:
        ValueError: If the text is not valid base64
    """
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError("Invalid base64 value") from e


def generate_salt() -> str:
    """Generate a fresh random salt, base64 encoded."""
    return encode_b64(secrets.token_bytes(SALT_BYTES))


class KeyDeriver:
    """
    PBKDF2-HMAC key deriver.

    Instances carry the derivation parameters so a client can be configured
    once and used for both registration and sign-in.
    """

    def __init__(
        self,
        iterations: int = DEFAULT_ITERATIONS,
        key_length: int = DEFAULT_KEY_LENGTH,
        digest: str = DEFAULT_DIGEST,
    ) -> None:
        self.iterations = iterations
        self.key_length = key_length
        self.digest = digest

    def derive(self, email: str, password: str) -> DerivedCredential:
        """
        Derive a key for registration with a freshly generated salt.

        Args:
            email: Email the credential is bound to
            password: User's raw password

        Returns:
            DerivedCredential with base64 key and salt

        Raises:
            DerivationError: If the underlying derivation fails
        """
        return self.rederive(email, password, generate_salt())

    def rederive(self, email: str, password: str, salt: str) -> DerivedCredential:
        """
        Deterministically re-derive a key from a known salt (sign-in).

        Raises:
            DerivationError: If the underlying derivation fails
        """
        if not isinstance(email, str) or not isinstance(password, str):
            raise DerivationError("Email and password must be strings")
        if not isinstance(salt, str) or not salt:
            raise DerivationError("Salt must be a non-empty string")
        if not isinstance(self.iterations, int) or not isinstance(self.key_length, int):
            raise DerivationError("Iterations and key length must be integers")
        if self.iterations < 1:
            raise DerivationError(f"Invalid iteration count: {self.iterations}")
        if self.key_length < 1:
            raise DerivationError(f"Invalid key length: {self.key_length}")

        secret = f"{email}:{password}".encode()
        try:
            key = hashlib.pbkdf2_hmac(
                self.digest, secret, salt.encode(), self.iterations, self.key_length
            )
        except (ValueError, TypeError, OverflowError) as e:
            raise DerivationError(f"Key derivation failed: {e}") from e

        return DerivedCredential(key=encode_b64(key), salt=salt)

    async def derive_async(self, email: str, password: str) -> DerivedCredential:
        """Run derive() in a worker thread without blocking the event loop."""
        return await asyncio.to_thread(self.derive, email, password)

    async def rederive_async(self, email: str, password: str, salt: str) -> DerivedCredential:
        """Run rederive() in a worker thread without blocking the event loop."""
        return await asyncio.to_thread(self.rederive, email, password, salt)


def derive(
    email: str,
    password: str,
    iterations: int = DEFAULT_ITERATIONS,
    key_length: int = DEFAULT_KEY_LENGTH,
    digest: str = DEFAULT_DIGEST,
) -> DerivedCredential:
    """Module-level shortcut for KeyDeriver(...).derive(email, password)."""
    return KeyDeriver(iterations, key_length, digest).derive(email, password)
