"""
Central pytest configuration for the PodoCare data layer tests.

This file provides common fixtures, test markers, and setup
for both unit and integration tests.
"""

import os
from datetime import datetime, timezone

# Fix the application timezone before podocare computes APP_TZ at import time
os.environ["TZ"] = "UTC"
os.environ.pop("PODOCARE_PAGE_SIZE", None)

import pytest

from podocare.core.config import create_repository_config
from podocare.db.storage import InMemoryStore
from podocare.repositories.api import ApiClient
from podocare.repositories.local import NoDelay

API_BASE_URL = "https://clinic.test/api"

# Thursday 2024-01-26 12:00 UTC: seed appointments 3 and 4 fall on this day
FIXED_NOW = datetime(2024, 1, 26, 12, 0, tzinfo=timezone.utc)


# =====================================================
# MARKERS
# =====================================================


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "repositories: mark test as repository test")
    config.addinivalue_line("markers", "api: mark test as API backend test")
    config.addinivalue_line("markers", "local: mark test as local backend test")
    config.addinivalue_line("markers", "hybrid: mark test as hybrid mode test")
    config.addinivalue_line("markers", "pagination: mark test as pagination-related")
    config.addinivalue_line("markers", "config: mark test as configuration-related")
    config.addinivalue_line("markers", "database: mark test as database-related")


def pytest_collection_modifyitems(config, items):
    """Modify test items during collection."""
    for item in items:
        # Add markers based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        if "repo" in str(item.fspath) or "repository" in str(item.fspath):
            item.add_marker(pytest.mark.repositories)


# =====================================================
# BASIC FIXTURES
# =====================================================


@pytest.fixture
def fixed_clock():
    """Clock pinned to FIXED_NOW so stats and 'today' filters are deterministic."""
    return lambda: FIXED_NOW


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return InMemoryStore()


@pytest.fixture
def local_config():
    """Local-mode configuration with latency disabled and a test storage prefix."""
    return create_repository_config(
        "local", local_storage_prefix="test", simulate_latency=False
    )


@pytest.fixture
def api_config():
    return create_repository_config("api", api_base_url=API_BASE_URL, api_key="secret")


@pytest.fixture
def api_client(api_config):
    """ApiClient with a real requests.Session; tests patch Session.request."""
    client = ApiClient.from_config(api_config)
    yield client
    client.close()


@pytest.fixture
def make_local_repo(store, local_config, fixed_clock):
    """Build a local repository of any class on the shared store with zero latency."""

    def _make(repo_class, **kwargs):
        kwargs.setdefault("delay", NoDelay())
        kwargs.setdefault("clock", fixed_clock)
        return repo_class(store, local_config, **kwargs)

    return _make
