"""
Global pytest fixtures for the Shortlink Platform test suite.

Responsibilities:
    - Provide a fresh FastAPI TestClient via the app factory for integration tests
    - Provide isolated in-memory Storage for direct testing
    - Provide a CodeRegistry fixture wired to the Storage fixture (unit/integration)

Why an app factory?
    Using `create_app()` with an injected registry ensures each test gets fresh
    in-memory state, eliminating cross-test flakiness.
"""

import os

# `main` builds a module-level app on import; keep it off the SQLite default.
os.environ["SHORTLINK_STORAGE_BACKEND"] = "memory"

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortlink_platform.manager.code_registry import CodeRegistry
from shortlink_platform.storage.storage import Storage


@pytest.fixture
def storage() -> Storage:
    """Provide a fresh in-memory Storage backend."""
    return Storage()


@pytest.fixture
def registry(storage: Storage) -> CodeRegistry:
    """Provide a CodeRegistry wired to the storage fixture."""
    return CodeRegistry(storage=storage, code_length=6, max_attempts=10, max_extra=2)


@pytest.fixture
def client(registry: CodeRegistry) -> TestClient:
    """
    Provide a fresh TestClient with a new app instance.

    Notes:
        - Redirects are not followed so tests can assert on the 302 itself.
    """
    app = create_app(registry=registry, base_url="http://sho.rt")
    return TestClient(app, follow_redirects=False)
