"""
Config test fixtures - clean environment via monkeypatch.
"""

import pytest

from config import reset_config


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all env vars that config modules might read, for isolation."""
    env_vars_to_clear = [
        "AzureWebJobsStorage", "STORAGE_DEV_ACCOUNT_NAME",
        "STORAGE_LOGS_CONTAINER", "STORAGE_BLOB_LOG_PREFIX",
        "QUEUE_POLL_NORMAL_INTERVAL_SECONDS", "QUEUE_POLL_MINIMUM_INTERVAL_SECONDS",
        "QUEUE_POLL_SPEEDUP_DIVISOR", "QUEUE_VISIBILITY_TIMEOUT_SECONDS",
        "QUEUE_STOP_JOIN_TIMEOUT_SECONDS",
        "ServiceBusConnection", "SERVICE_BUS_NAMESPACE",
        "ServiceBusConnection__fullyQualifiedNamespace",
        "SERVICE_BUS_MAX_WAIT_TIME_SECONDS", "SERVICE_BUS_POLL_INTERVAL_ON_ERROR_SECONDS",
        "DEBUG_MODE", "ENVIRONMENT", "LOG_LEVEL",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield monkeypatch
    reset_config()
