"""Test doubles shared across unit, integration and adversarial tests."""

from datetime import UTC, datetime, timedelta

from src.domain.accounts import AuthConfig
from src.domain.key_derivation import DerivedCredential, KeyDeriver

TEST_CONFIG = AuthConfig(verification_ttl_seconds=3600, bcrypt_cost=4, salt_secret="test-secret")


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingNotifier:
    """Notifier that records every (email, name, token) it is asked to send."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = fail

    def send_verification_email(self, email: str, name: str, token: str) -> None:
        if self.fail:
            raise ConnectionError("SMTP relay unreachable")
        self.sent.append((email, name, token))

    @property
    def last_token(self) -> str:
        return self.sent[-1][2]


def sign_up(client, email: str, password: str = "Secret123!") -> DerivedCredential:
    """Derive a key like the client does and register it through the API."""
    credential = KeyDeriver(iterations=1000).derive(email, password)
    response = client.post(
        "/v1/sign-up",
        json={"email": email, "name": "Alice", "derived_key": credential.key, "salt": credential.salt},
    )
    assert response.status_code == 201
    return credential
