"""Root pytest configuration.

Test Structure:
    tests/
    ├── unit/           # Entities, settings, factory, CLI
    ├── contract/       # Storage contract, run against every backend
    ├── sql_backend/    # SQL-backend specifics (SQLite file database)
    ├── integration/    # PostgreSQL through Testcontainers (auto-skipped)
    └── shared/         # Shared fixtures

Environment Variables:
    RUN_INTEGRATION=1    Run @pytest.mark.integration tests
    RUN_ALL_TESTS=1      Run all tests

Pytest Options:
    --run-integration    Run integration tests
    --run-all            Run all tests
"""

import os
from uuid import uuid4

import pytest
import pytest_asyncio

from authvault.persistence.memory import InMemoryStorage
from authvault.persistence.sqlalchemy import SQLAlchemyStorage
from authvault_config import clear_settings_cache
from tests.shared.fixtures.clock import FakeClock
from tests.shared.fixtures.sqlite import sqlite_url

TOKEN_LIFETIME = 3600


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests marked with @pytest.mark.integration",
    )
    parser.addoption(
        "--run-all",
        action="store_true",
        default=False,
        help="Run all tests regardless of markers",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: Tests against a real PostgreSQL server (auto-skipped)",
    )


def _flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def pytest_collection_modifyitems(config, items):
    """Auto-skip integration tests unless explicitly enabled."""
    if config.getoption("--run-all") or _flag("RUN_ALL_TESTS"):
        return

    if config.getoption("--run-integration") or _flag("RUN_INTEGRATION"):
        return

    skip_integration = pytest.mark.skip(
        reason="Integration test - run with --run-integration or RUN_INTEGRATION=1",
    )
    for item in items:
        item_markers = {mark.name for mark in item.iter_markers()}
        if "integration" in item_markers:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Make every test read settings from its own environment."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def sql_storage(tmp_path, clock):
    """Connected and initialized SQL storage on a fresh SQLite file."""
    storage = SQLAlchemyStorage(TOKEN_LIFETIME, sqlite_url(tmp_path), clock=clock)
    await storage.connect()
    await storage.initialize()
    yield storage
    await storage.close()


@pytest_asyncio.fixture
async def memory_storage(clock):
    """Connected and initialized in-memory storage."""
    storage = InMemoryStorage(TOKEN_LIFETIME, clock=clock)
    await storage.connect()
    await storage.initialize()
    yield storage
    await storage.close()

@pytest_asyncio.fixture(params=["sqlite", "memory"])
async def storage(request, tmp_path, clock):
    """Connected and initialized storage, once per backend."""
    if request.param == "sqlite":
        storage = SQLAlchemyStorage(TOKEN_LIFETIME, sqlite_url(tmp_path), clock=clock)
    else:
        storage = InMemoryStorage(TOKEN_LIFETIME, clock=clock)
    await storage.connect()
    await storage.initialize()
    yield storage
    await storage.close()


@pytest.fixture
def missing_user_id(storage):
    """An identifier no user has, in the id type of the backend."""
    if isinstance(storage, InMemoryStorage):
        return uuid4()
    return 10_000
