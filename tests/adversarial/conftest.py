"""
Shared fixtures for adversarial tests.

Provides the API wired to in-memory storage and a recording notifier.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from src.adapters.repository.memory import InMemoryAccountRepository
from src.api.dependencies import get_auth_config, get_notifier
from src.api.main import app
from tests.support import TEST_CONFIG, RecordingNotifier


@pytest.fixture
def memory_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def api_client(
    memory_repository: InMemoryAccountRepository, notifier: RecordingNotifier
) -> Generator[TestClient, None, None]:
    """TestClient for the application with in-memory storage."""
    app.state.repository = memory_repository
    app.state.pool = None
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_auth_config] = lambda: TEST_CONFIG
    yield TestClient(app)
    app.dependency_overrides.clear()
