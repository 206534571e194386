"""
Unit test fixtures - listener construction with in-memory stores.
"""

import pytest

from config.queue_config import QueuePollConfig
from listeners import Listener


@pytest.fixture
def fast_queue_config():
    """Short intervals so timer tests finish quickly."""
    return QueuePollConfig(
        normal_interval_seconds=0.05,
        minimum_interval_seconds=0.01,
        speedup_divisor=4,
        stop_join_timeout_seconds=5.0,
    )


@pytest.fixture
def make_listener(invoker, handle_provider, blob_store, queue_store, fast_queue_config):
    """Factory fixture: Listener over the shared fakes."""
    def _make(snapshot, **overrides):
        kwargs = dict(
            handle_provider=handle_provider,
            blob_store=blob_store,
            queue_store=queue_store,
            queue_config=fast_queue_config,
        )
        kwargs.update(overrides)
        return Listener(snapshot, invoker, **kwargs)
    return _make
