"""
Listener end-to-end over the in-memory stores.

Covers the blob decision flow (poll and hint), error propagation rules,
queue timer lifecycle and extension wiring.
"""

import time
from datetime import timedelta
from unittest import mock

import pytest

from config import AppConfig
from config.queue_config import QueuePollConfig
from core.models import PollContext
from exceptions import ConfigurationError, ContractViolationError, TransientStoreError
from infrastructure.factory import RepositoryFactory
from listeners import ContainerScanBlobDetector, Listener, ListenerExtension
from tests.factories.trigger_factories import (
    make_blob_trigger,
    make_queue_trigger,
    make_service_bus_trigger,
    make_snapshot,
)


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


@pytest.fixture
def writes_output(blob_store):
    """on_blob hook: the job writes out/<same name> 50s after its input."""
    def _hook(blob, trigger):
        blob_store.put("out", blob.blob_name, blob.last_modified + timedelta(seconds=50))
    return _hook


class RecordingExtension(ListenerExtension):

    name = "recording"

    def __init__(self):
        self.claimed = []
        self.started_with = None
        self.stopped = False

    def map_trigger(self, trigger) -> bool:
        self.claimed.append(trigger)
        return True

    def start_polling(self, context):
        self.started_with = context

    def stop_polling(self):
        self.stopped = True


class TestBlobFlow:

    def test_invokes_only_when_output_is_stale(self, make_listener, blob_store, invoker, utc, writes_output):
        trigger = make_blob_trigger("in/{name}.txt", ["out/{name}.txt"], function_name="copy")
        listener = make_listener(make_snapshot(trigger))
        invoker.on_blob = writes_output

        blob_store.put("in", "a.txt", utc(100))
        listener.poll()
        assert invoker.blob_calls == [("copy", "in", "a.txt")]

        # Output at T=150 is newer than the input at T=100
        listener.poll()
        assert len(invoker.blob_calls) == 1

        blob_store.put("in", "a.txt", utc(200))
        listener.poll()
        assert invoker.blob_calls == [("copy", "in", "a.txt")] * 2

    def test_invoker_sees_current_modified_time(self, make_listener, blob_store, invoker, utc):
        seen = []
        invoker.on_blob = lambda blob, trigger: seen.append(blob.last_modified)
        listener = make_listener(make_snapshot(make_blob_trigger("in/{name}")))

        blob_store.put("in", "a", utc(100), log=False)
        listener.poll()
        assert seen == [utc(100)]

    def test_non_matching_blob_ignored(self, make_listener, blob_store, invoker, utc):
        listener = make_listener(make_snapshot(make_blob_trigger("in/{name}.csv")))
        blob_store.put("in", "a.txt", utc(100))
        listener.poll()
        assert invoker.blob_calls == []

    def test_triggers_on_one_container_run_in_registration_order(self, make_listener, blob_store, invoker, utc):
        snapshot = make_snapshot(
            make_blob_trigger("in/{name}.txt", function_name="first"),
            make_blob_trigger("in/{name}", function_name="second"),
        )
        listener = make_listener(snapshot)
        blob_store.put("in", "a.txt", utc(100))
        listener.poll()
        assert [call[0] for call in invoker.blob_calls] == ["first", "second"]

    def test_unresolved_output_skips_only_that_trigger(self, make_listener, blob_store, invoker, utc):
        snapshot = make_snapshot(
            make_blob_trigger("in/{name}.txt", ["out/{missing}.txt"], function_name="broken"),
            make_blob_trigger("in/{name}.txt", ["out/{name}.txt"], function_name="healthy"),
        )
        listener = make_listener(snapshot)
        blob_store.put("in", "a.txt", utc(100))
        listener.poll()
        assert invoker.blob_calls == [("healthy", "in", "a.txt")]

    def test_invoker_exception_propagates(self, make_listener, blob_store, invoker, utc):
        listener = make_listener(make_snapshot(make_blob_trigger("in/{name}", function_name="fails")))
        invoker.fail_functions.add("fails")
        blob_store.put("in", "a", utc(100))
        with pytest.raises(RuntimeError):
            listener.poll()

    def test_transient_fault_swallowed_and_retried(self, make_listener, blob_store, invoker, utc):
        listener = make_listener(make_snapshot(make_blob_trigger("in/{name}")))
        blob_store.put("in", "a", utc(100))
        blob_store.transient_error = TransientStoreError("throttled")

        listener.poll()
        assert invoker.blob_calls == []

        listener.poll()
        assert len(invoker.blob_calls) == 1

    def test_development_storage_uses_container_scan(self, make_listener, blob_store, invoker, utc):
        trigger = make_blob_trigger("in/{name}", connection="UseDevelopmentStorage=true")
        listener = make_listener(make_snapshot(trigger))
        assert isinstance(listener.detector, ContainerScanBlobDetector)

        blob_store.put("in", "a", utc(100), account="devstoreaccount1", log=False)
        listener.poll()
        assert len(invoker.blob_calls) == 1

    def test_debug_mode_does_not_change_decisions(self, make_listener, blob_store, invoker, utc):
        listener = make_listener(make_snapshot(make_blob_trigger("in/{name}")), debug_mode=True)
        blob_store.put("in", "a", utc(100))
        listener.poll(PollContext(correlation_id="abc"))
        assert len(invoker.blob_calls) == 1


class TestBlobHints:

    def test_hint_invokes_once_outputs_exist(self, make_listener, blob_store, invoker, utc, writes_output):
        listener = make_listener(make_snapshot(make_blob_trigger("in/{name}.txt", ["out/{name}.txt"])))
        invoker.on_blob = writes_output
        blob_store.put("in", "a.txt", utc(100))

        listener.invoke_triggers_for_blob("TESTACCOUNT", "in", "a.txt")
        listener.invoke_triggers_for_blob("testaccount", "in", "a.txt")

        assert len(invoker.blob_calls) == 1

    def test_hint_for_unregistered_container_ignored(self, make_listener, blob_store, invoker, utc):
        listener = make_listener(make_snapshot(make_blob_trigger("in/{name}")))
        blob_store.put("elsewhere", "a", utc(100))
        listener.invoke_triggers_for_blob("testaccount", "elsewhere", "a")
        listener.invoke_triggers_for_blob("testaccount", "IN", "a")
        assert invoker.blob_calls == []

    def test_hint_for_missing_blob_ignored(self, make_listener, invoker):
        listener = make_listener(make_snapshot(make_blob_trigger("in/{name}")))
        listener.invoke_triggers_for_blob("testaccount", "in", "gone")
        assert invoker.blob_calls == []

    def test_hint_transient_fault_dropped(self, make_listener, blob_store, invoker, utc):
        listener = make_listener(make_snapshot(make_blob_trigger("in/{name}")))
        blob_store.put("in", "a", utc(100))
        blob_store.transient_error = TransientStoreError("throttled")
        listener.invoke_triggers_for_blob("testaccount", "in", "a")
        assert invoker.blob_calls == []


class TestConstruction:

    def test_invoker_must_implement_interface(self, handle_provider, blob_store, queue_store):
        with pytest.raises(ContractViolationError):
            Listener(make_snapshot(), object(), handle_provider, blob_store, queue_store)

    def test_service_bus_trigger_needs_an_extension(self, make_listener):
        with pytest.raises(ConfigurationError):
            make_listener(make_snapshot(make_service_bus_trigger("jobs")))

    def test_extension_claims_trigger(self, make_listener):
        extension = RecordingExtension()
        trigger = make_service_bus_trigger("jobs")
        make_listener(make_snapshot(trigger), extensions=[extension])
        assert extension.claimed == [trigger]

    def test_from_config_uses_factory_stores(self, invoker, handle_provider, blob_store, queue_store):
        stores = {'handle_provider': handle_provider, 'blob_store': blob_store, 'queue_store': queue_store}
        config = AppConfig(queues=QueuePollConfig(normal_interval_seconds=5, minimum_interval_seconds=1))
        with mock.patch.object(RepositoryFactory, "create_stores", return_value=stores) as create_stores:
            listener = Listener.from_config(make_snapshot(make_blob_trigger("in/{name}")), invoker, config)
        create_stores.assert_called_once_with(config)
        assert listener.blob_store is blob_store
        assert listener.queue_config.normal_interval_seconds == 5


class TestQueuePolling:

    def test_start_and_stop(self, make_listener, queue_store, invoker):
        trigger = make_queue_trigger("orders", function_name="orders_fn")
        listener = make_listener(make_snapshot(trigger))
        queue_store.enqueue("orders", "one")
        queue_store.enqueue("orders", "two")

        listener.start_polling()
        assert listener.get_status()["state"] == "polling"
        assert len(listener.get_status()["timers"]) == 1
        assert _wait_for(lambda: len(invoker.queue_calls) == 2)
        listener.stop_polling()

        assert invoker.queue_calls == [("orders_fn", "one"), ("orders_fn", "two")]
        status = listener.get_status()
        assert status["state"] == "stopped"
        assert status["timers"] == []

    def test_failed_message_redelivered_after_visibility_timeout(self, make_listener, queue_store, invoker):
        trigger = make_queue_trigger("orders", function_name="flaky")
        listener = make_listener(make_snapshot(trigger))
        invoker.fail_functions.add("flaky")
        queue_store.enqueue("orders", "retry-me")

        listener.start_polling()
        assert _wait_for(lambda: listener.get_status()["timers"][0]["messages_failed"] == 1)
        assert queue_store.in_flight_count("orders") == 1
        invoker.fail_functions.clear()
        queue_store.release_in_flight()
        assert _wait_for(lambda: queue_store.deleted)
        listener.stop_polling()

        assert [content for _, content in invoker.queue_calls] == ["retry-me", "retry-me"]

    def test_restart_builds_fresh_timers(self, make_listener, queue_store, invoker):
        listener = make_listener(make_snapshot(make_queue_trigger("orders")))
        listener.start_polling()
        listener.stop_polling()

        queue_store.enqueue("orders", "after-restart")
        listener.start_polling()
        assert _wait_for(lambda: len(invoker.queue_calls) == 1)
        listener.stop_polling()

    def test_extensions_started_and_stopped_with_listener(self, make_listener):
        extension = RecordingExtension()
        listener = make_listener(make_snapshot(make_service_bus_trigger("jobs")), extensions=[extension])
        context = PollContext(correlation_id="host-1")

        listener.start_polling(context)
        assert extension.started_with is context
        listener.stop_polling()
        assert extension.stopped
        assert listener.get_status()["extensions"] == [{"name": "recording"}]
