"""
Root conftest.py - sys.path, env vars, shared fixtures.

Sets up the test environment so all production code can be imported
without Azure credentials. Storage, queues and the invoker are replaced
by the in-memory doubles in tests/factories/storage_fakes.py.
"""

import os
import sys
from datetime import datetime, timezone

import pytest

# Add project root to sys.path so 'core', 'listeners', 'config', etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tests.factories.storage_fakes import (  # noqa: E402
    FakeHandleProvider,
    InMemoryBlobStore,
    InMemoryQueueStore,
    RecordingInvoker,
)


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """
    Set minimal environment variables to prevent import crashes.

    Nothing here points at a real account; tests inject fakes.
    """
    defaults = {
        "ENVIRONMENT": "dev",
        "AzureWebJobsStorage": "UseDevelopmentStorage=true",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


@pytest.fixture
def handle_provider():
    """Resolves every connection string to one production-like account."""
    return FakeHandleProvider()


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def queue_store():
    return InMemoryQueueStore()


@pytest.fixture
def invoker():
    return RecordingInvoker()


@pytest.fixture
def utc():
    """Factory fixture: seconds since the epoch to an aware UTC datetime."""
    def _utc(seconds: float) -> datetime:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    return _utc
