import os

import pytest

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from taskboard.main import app  # noqa: E402
from taskboard.repositories import InMemoryRepository, get_repository  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_repository():
    """Give every test its own empty in-memory store."""
    repo = InMemoryRepository()
    app.dependency_overrides[get_repository] = lambda: repo
    yield repo
    app.dependency_overrides.pop(get_repository, None)
