"""
In-memory repository adapter - Implements AccountRepository protocol.

Process-local storage for development and tests. A single lock guards
every operation, giving the same atomicity the PostgreSQL adapter gets
from row locks and upserts.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from src.domain.ports import Account, AccountState, VerifyResult


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class _Row:
    account: Account
    token_hash: str | None
    token_expires_at: datetime | None


class InMemoryAccountRepository:
    """
    Implements AccountRepository protocol with a dict keyed by email.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._rows: dict[str, _Row] = {}
        self._lock = threading.Lock()

    def create_account(
        self,
        email: str,
        name: str,
        credential_hash: str,
        salt: str,
        token_hash: str,
        token_expires_at: datetime,
    ) -> bool:
        if not salt:
            raise ValueError("salt is required")

        with self._lock:
            now = self._clock()
            existing = self._rows.get(email)
            if existing is not None and not self._replaceable(existing, now):
                return False

            self._rows[email] = _Row(
                account=Account(
                    email=email,
                    name=name,
                    credential_hash=credential_hash,
                    salt=salt,
                    state=AccountState.UNVERIFIED,
                    created_at=now,
                ),
                token_hash=token_hash,
                token_expires_at=token_expires_at,
            )
            return True

    def get_account(self, email: str) -> Account | None:
        with self._lock:
            row = self._rows.get(email)
            return row.account if row is not None else None

    def replace_verification_token(
        self, email: str, token_hash: str | None, token_expires_at: datetime | None
    ) -> bool:
        with self._lock:
            row = self._rows.get(email)
            if row is None or row.account.state != AccountState.UNVERIFIED:
                return False
            row.token_hash = token_hash
            row.token_expires_at = token_expires_at
            return True

    def consume_verification_token(self, token_hash: str) -> tuple[VerifyResult, str | None]:
        with self._lock:
            row = self._find_by_token(token_hash)
            if row is None or row.account.state != AccountState.UNVERIFIED:
                return VerifyResult.INVALID_TOKEN, None

            now = self._clock()
            if row.token_expires_at is None or row.token_expires_at <= now:
                return VerifyResult.EXPIRED, row.account.email

            row.account = replace(row.account, state=AccountState.VERIFIED, verified_at=now)
            row.token_hash = None
            row.token_expires_at = None
            return VerifyResult.SUCCESS, row.account.email

    def _find_by_token(self, token_hash: str) -> _Row | None:
        for row in self._rows.values():
            if row.token_hash is not None and row.token_hash == token_hash:
                return row
        return None

    @staticmethod
    def _replaceable(row: _Row, now: datetime) -> bool:
        if row.account.state != AccountState.UNVERIFIED:
            return False
        return row.token_hash is None or (
            row.token_expires_at is not None and row.token_expires_at <= now
        )
