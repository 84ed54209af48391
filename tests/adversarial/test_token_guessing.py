"""
Adversarial tests for verification token guessing.

Tokens must be unguessable and useless if the account store leaks:
- Tokens carry at least 256 bits of randomness
- Only a SHA-256 digest of the token is stored
- Guessed tokens never verify, and never disturb the real token
- A resent token retires the previous one
"""

import hashlib
import secrets

import pytest

from src.adapters.repository.memory import InMemoryAccountRepository
from src.domain.accounts import AuthService
from src.domain.exceptions import VerificationFailed
from src.domain.key_derivation import KeyDeriver
from src.domain.ports import AccountState
from tests.support import RecordingNotifier

pytestmark = pytest.mark.adversarial


@pytest.fixture
def registered(service: AuthService, deriver: KeyDeriver) -> str:
    credential = deriver.derive("a@b.com", "Secret123!")
    return service.register("a@b.com", "Alice", credential.key, credential.salt)


class TestTokenStrength:
    """Shape and storage of issued tokens."""

    def test_tokens_are_long_and_unique(
        self, service: AuthService, notifier: RecordingNotifier, deriver: KeyDeriver
    ) -> None:
        for i in range(20):
            credential = deriver.derive(f"user{i}@b.com", "Secret123!")
            service.register(f"user{i}@b.com", "User", credential.key, credential.salt)

        tokens = [token for _, _, token in notifier.sent]
        assert len(set(tokens)) == 20
        assert min(len(token) for token in tokens) >= 43

    def test_only_token_digest_is_stored(
        self,
        registered: str,
        repository: InMemoryAccountRepository,
        notifier: RecordingNotifier,
    ) -> None:
        """A leaked account store does not contain a usable token."""
        token = notifier.last_token
        row = repository._rows[registered]

        assert row.token_hash != token
        assert row.token_hash == hashlib.sha256(token.encode()).hexdigest()

    def test_stored_digest_does_not_verify(
        self,
        service: AuthService,
        registered: str,
        repository: InMemoryAccountRepository,
    ) -> None:
        """Presenting the stored digest itself is rejected."""
        with pytest.raises(VerificationFailed):
            service.verify_email(repository._rows[registered].token_hash)


class TestGuessing:
    """Online guessing against the verification endpoint."""

    def test_guessed_tokens_never_verify(
        self,
        service: AuthService,
        registered: str,
        repository: InMemoryAccountRepository,
        notifier: RecordingNotifier,
    ) -> None:
        """Hundreds of random guesses fail and the real token still works."""
        for _ in range(200):
            with pytest.raises(VerificationFailed):
                service.verify_email(secrets.token_urlsafe(32))

        assert repository.get_account(registered).state == AccountState.UNVERIFIED
        assert service.verify_email(notifier.last_token) == registered

    @pytest.mark.parametrize("mutation", [str.upper, lambda t: t[:-1], lambda t: t + "A"])
    def test_near_miss_tokens_rejected(
        self, service: AuthService, registered: str, notifier: RecordingNotifier, mutation
    ) -> None:
        """Tokens one edit away from the real one do not verify."""
        token = notifier.last_token

        with pytest.raises(VerificationFailed):
            service.verify_email(mutation(token))

    def test_resent_token_retires_previous(
        self, service: AuthService, registered: str, notifier: RecordingNotifier
    ) -> None:
        """After a resend only the newest token verifies."""
        first = notifier.last_token
        service.resend_verification(registered)
        second = notifier.last_token

        with pytest.raises(VerificationFailed):
            service.verify_email(first)
        assert service.verify_email(second) == registered
