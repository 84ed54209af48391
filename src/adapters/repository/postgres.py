"""
PostgreSQL repository adapter - Implements AccountRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Token Consumption:
------------------
consume_verification_token locks the matching row with SELECT FOR UPDATE and
clears the token in the same transaction that flips the state to VERIFIED.
Two concurrent presentations of one token serialize on the row lock; the
second finds no row and gets INVALID_TOKEN.

Token expiry is evaluated with database time (NOW()) so application clock
skew cannot extend a token's validity.
"""

import logging
from pathlib import Path

from psycopg_pool import ConnectionPool

from src.domain.ports import Account, AccountState, VerifyResult

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = "email, name, credential_hash, salt, state, created_at, verified_at"


def _row_to_account(row: tuple) -> Account:
    return Account(
        email=row[0],
        name=row[1],
        credential_hash=row[2],
        salt=row[3],
        state=AccountState(row[4]),
        created_at=row[5],
        verified_at=row[6],
    )


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def create_account(
        self,
        email: str,
        name: str,
        credential_hash: str,
        salt: str,
        token_hash: str,
        token_expires_at,
    ) -> bool:
        """
        Atomically create an UNVERIFIED account.

        Uses INSERT ... ON CONFLICT DO UPDATE WHERE for atomic upsert.
        The WHERE clause only lets an UNVERIFIED account without a live
        token be replaced. The UNIQUE email key prevents duplicates.

        Returns:
            True if the row was inserted or replaced, False if the email is taken
        """
        sql = """
            INSERT INTO accounts (email, name, credential_hash, salt, state,
                                  token_hash, token_expires_at, created_at)
            VALUES (%s, %s, %s, %s, 'UNVERIFIED', %s, %s, NOW())
            ON CONFLICT (email) DO UPDATE
            SET name = EXCLUDED.name,
                credential_hash = EXCLUDED.credential_hash,
                salt = EXCLUDED.salt,
                state = 'UNVERIFIED',
                token_hash = EXCLUDED.token_hash,
                token_expires_at = EXCLUDED.token_expires_at,
                created_at = NOW(),
                verified_at = NULL
            WHERE accounts.state = 'UNVERIFIED'
              AND (accounts.token_hash IS NULL OR accounts.token_expires_at <= NOW())
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                sql, (email, name, credential_hash, salt, token_hash, token_expires_at)
            )
            conn.commit()
            return cursor.rowcount == 1

    def get_account(self, email: str) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()

        return _row_to_account(row) if row is not None else None

    def replace_verification_token(self, email: str, token_hash, token_expires_at) -> bool:
        """Replace or revoke (NULL) the token of an UNVERIFIED account."""
        sql = """
            UPDATE accounts
            SET token_hash = %s, token_expires_at = %s
            WHERE email = %s AND state = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                sql, (token_hash, token_expires_at, email, AccountState.UNVERIFIED.value)
            )
            conn.commit()
            return cursor.rowcount == 1

    def consume_verification_token(self, token_hash: str) -> tuple[VerifyResult, str | None]:
        """
        Verify a token digest and activate its account.

        Return values by scenario:
        - SUCCESS: Live token, state transitions to VERIFIED, token cleared
        - INVALID_TOKEN: No UNVERIFIED account holds this token
        - EXPIRED: Token found but past token_expires_at (state unchanged)
        """
        select_sql = """
            SELECT email, state, token_expires_at > NOW()
            FROM accounts
            WHERE token_hash = %s
            FOR UPDATE
        """

        verify_sql = """
            UPDATE accounts
            SET state = %s, verified_at = NOW(), token_hash = NULL, token_expires_at = NULL
            WHERE email = %s AND state = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(select_sql, (token_hash,))
            row = cursor.fetchone()

            if row is None or row[1] != AccountState.UNVERIFIED.value:
                conn.commit()
                return VerifyResult.INVALID_TOKEN, None

            email, _, live = row
            if not live:
                conn.commit()
                return VerifyResult.EXPIRED, email

            cursor.execute(
                verify_sql,
                (AccountState.VERIFIED.value, email, AccountState.UNVERIFIED.value),
            )
            conn.commit()
            return VerifyResult.SUCCESS, email


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
