"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for token expiry
- In-memory repository and recording notifier
- An AuthService wired with a low bcrypt cost for speed
- A PostgreSQL pool that skips tests when no database is reachable
"""

from collections.abc import Generator

import pytest

from src.adapters.repository.memory import InMemoryAccountRepository
from src.domain.accounts import AuthService
from src.domain.key_derivation import KeyDeriver
from tests.support import TEST_CONFIG, FakeClock, RecordingNotifier


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(clock: FakeClock) -> InMemoryAccountRepository:
    return InMemoryAccountRepository(clock=clock)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(
    repository: InMemoryAccountRepository, notifier: RecordingNotifier, clock: FakeClock
) -> AuthService:
    return AuthService(repository=repository, notifier=notifier, config=TEST_CONFIG, clock=clock)


@pytest.fixture
def deriver() -> KeyDeriver:
    """Deriver with a reduced iteration count to keep tests fast."""
    return KeyDeriver(iterations=1000)


@pytest.fixture(scope="session")
def pg_pool() -> Generator:
    """Connection pool for PostgreSQL tests; skips when no database is reachable."""
    psycopg_pool = pytest.importorskip("psycopg_pool")
    from src.adapters.repository.postgres import run_migrations
    from src.config.settings import get_settings

    settings = get_settings()
    pool = psycopg_pool.ConnectionPool(
        conninfo=settings.database_url, min_size=1, max_size=10, open=False
    )
    try:
        pool.open(wait=True, timeout=3)
    except Exception as e:
        pool.close()
        pytest.skip(f"PostgreSQL not available: {e}")

    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_accounts(pg_pool) -> Generator:
    """Empty the accounts table before a PostgreSQL test."""
    with pg_pool.connection() as conn:
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield pg_pool
