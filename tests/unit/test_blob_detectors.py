"""
Blob change detectors: container scan, analytics log watermark, selection.
"""

import threading

import pytest

from core.models import PollContext
from listeners import (
    AnalyticsLogBlobDetector,
    ContainerScanBlobDetector,
    Listener,
    TriggerRegistry,
    select_blob_detector,
)
from listeners.analytics_log import WRITE_OPERATIONS
from tests.factories.storage_fakes import InMemoryBlobStore, RecordingInvoker
from tests.factories.trigger_factories import make_blob_trigger, make_snapshot


class _Collector:

    def __init__(self):
        self.seen = []

    def __call__(self, item, context):
        self.seen.append((item.container_name, item.blob_name))


@pytest.fixture
def containers(handle_provider):
    account = handle_provider.get_account()
    return [handle_provider.get_container(account, "in"), handle_provider.get_container(account, "docs")]


class TestContainerScan:

    def test_lists_every_registered_container(self, containers, blob_store, utc):
        blob_store.put("in", "a.txt", utc(100))
        blob_store.put("docs", "b.md", utc(100))
        blob_store.put("other", "c.txt", utc(100))
        collect = _Collector()

        ContainerScanBlobDetector(containers, blob_store).poll(collect, PollContext())

        assert collect.seen == [("in", "a.txt"), ("docs", "b.md")]

    def test_every_poll_lists_again(self, containers, blob_store, utc):
        blob_store.put("in", "a.txt", utc(100))
        detector = ContainerScanBlobDetector(containers, blob_store)
        collect = _Collector()
        detector.poll(collect, PollContext())
        detector.poll(collect, PollContext())
        assert collect.seen.count(("in", "a.txt")) == 2

    def test_cancellation_stops_scan(self, containers, blob_store, utc):
        for i in range(5):
            blob_store.put("in", f"{i}.txt", utc(100))
        context = PollContext(cancel_event=threading.Event())
        seen = []

        def cancel_after_two(item, ctx):
            seen.append(item.blob_name)
            if len(seen) == 2:
                ctx.cancel_event.set()

        ContainerScanBlobDetector(containers, blob_store).poll(cancel_after_two, context)
        assert seen == ["0.txt", "1.txt"]


class TestAnalyticsLog:

    def test_first_poll_scans_and_sets_watermark(self, containers, blob_store, utc):
        blob_store.put("in", "old.txt", utc(100))
        detector = AnalyticsLogBlobDetector(containers, blob_store)
        collect = _Collector()

        detector.poll(collect, PollContext())

        assert collect.seen == [("in", "old.txt")]
        assert detector.get_watermark("TestAccount") == (blob_store.current_log_name(), 0)

    def test_first_poll_without_logs(self, containers, blob_store):
        detector = AnalyticsLogBlobDetector(containers, blob_store)
        detector.poll(_Collector(), PollContext())
        assert "testaccount" in detector._watermarks
        assert detector.get_watermark("testaccount") is None

    def test_later_polls_read_only_new_lines(self, containers, blob_store, utc):
        blob_store.put("in", "old.txt", utc(100))
        detector = AnalyticsLogBlobDetector(containers, blob_store)
        detector.poll(_Collector(), PollContext())
        # First log poll replays the watermark log from line 0
        detector.poll(_Collector(), PollContext())

        blob_store.put("in", "new.txt", utc(200))
        blob_store.put("other", "ignored.txt", utc(200))
        collect = _Collector()
        detector.poll(collect, PollContext())

        assert collect.seen == [("in", "new.txt")]
        assert detector.get_watermark("testaccount") == (blob_store.current_log_name(), 3)

    def test_follows_log_rotation(self, containers, blob_store, utc):
        detector = AnalyticsLogBlobDetector(containers, blob_store)
        detector.poll(_Collector(), PollContext())

        blob_store.put("in", "1.txt", utc(100))
        blob_store.rotate_log()
        blob_store.put("docs", "2.md", utc(110))
        collect = _Collector()
        detector.poll(collect, PollContext())

        assert collect.seen == [("in", "1.txt"), ("docs", "2.md")]
        assert detector.get_watermark("testaccount") == (blob_store.current_log_name(), 1)

    def test_repeated_writes_collapse_within_one_log(self, containers, blob_store, utc):
        detector = AnalyticsLogBlobDetector(containers, blob_store)
        detector.poll(_Collector(), PollContext())

        for second in (100, 101, 102):
            blob_store.put("in", "hot.txt", utc(second))
        collect = _Collector()
        detector.poll(collect, PollContext())

        assert collect.seen == [("in", "hot.txt")]

    def test_interrupted_initial_scan_is_redone(self, containers, blob_store, utc):
        blob_store.put("in", "a.txt", utc(100))
        blob_store.put("in", "b.txt", utc(100))
        detector = AnalyticsLogBlobDetector(containers, blob_store)
        context = PollContext(cancel_event=threading.Event())

        def cancel_immediately(item, ctx):
            ctx.cancel_event.set()

        detector.poll(cancel_immediately, context)
        assert detector.get_watermark("testaccount") is None

        collect = _Collector()
        detector.poll(collect, PollContext())
        assert collect.seen == [("in", "a.txt"), ("in", "b.txt")]


class TestDetectorEquivalence:

    def test_same_candidates_after_writes(self, containers, blob_store, utc):
        scan = ContainerScanBlobDetector(containers, blob_store)
        logs = AnalyticsLogBlobDetector(containers, blob_store)
        logs.poll(_Collector(), PollContext())
        logs.poll(_Collector(), PollContext())

        blob_store.put("in", "x.txt", utc(100))
        blob_store.put("docs", "y.md", utc(100))
        from_scan, from_logs = _Collector(), _Collector()
        scan.poll(from_scan, PollContext())
        logs.poll(from_logs, PollContext())

        assert set(from_logs.seen) == set(from_scan.seen)

    @staticmethod
    def _listener(use_scan, handle_provider, queue_store, fast_queue_config, utc):
        """One listener over its own store, with a job that writes the output."""
        store = InMemoryBlobStore()
        store.put("in", "a.txt", utc(100))
        store.put("out", "a.txt", utc(150))
        store.put("in", "b.txt", utc(100))

        snapshot = make_snapshot(make_blob_trigger("in/{name}.txt", ["out/{name}.txt"], function_name="copy"))
        detector = None
        if use_scan:
            registry = TriggerRegistry(snapshot, handle_provider)
            detector = ContainerScanBlobDetector(registry.containers, store)

        invoker = RecordingInvoker()
        invoker.on_blob = lambda blob, trigger: store.put("out", blob.blob_name, utc(1000))
        listener = Listener(snapshot, invoker, handle_provider, store, queue_store,
                            queue_config=fast_queue_config, detector=detector)
        return listener, invoker, store

    @pytest.mark.parametrize("operation", sorted(WRITE_OPERATIONS))
    def test_same_invocations_for_every_write_type(self, operation, handle_provider, queue_store,
                                                   fast_queue_config, utc):
        scan = self._listener(True, handle_provider, queue_store, fast_queue_config, utc)
        logs = self._listener(False, handle_provider, queue_store, fast_queue_config, utc)
        assert scan[0].detector.kind != logs[0].detector.kind

        rounds = []
        for listener, invoker, store in (scan, logs):
            calls = []
            listener.poll()
            calls.append(list(invoker.blob_calls))

            # a.txt had a fresh output until now; c.txt is new
            store.put("in", "a.txt", utc(200), operation=operation)
            store.put("in", "c.txt", utc(210), operation=operation)
            listener.poll()
            calls.append(list(invoker.blob_calls))

            listener.poll()
            calls.append(list(invoker.blob_calls))
            rounds.append(calls)

        from_scan, from_logs = rounds
        assert from_scan[0] == [("copy", "in", "b.txt")]
        assert from_scan[1] == from_scan[0] + [("copy", "in", "a.txt"), ("copy", "in", "c.txt")]
        assert from_scan[2] == from_scan[1]
        assert from_logs == from_scan


class TestSelection:

    def test_production_account_uses_logs(self, handle_provider, blob_store):
        registry = TriggerRegistry(make_snapshot(make_blob_trigger("in/{name}")), handle_provider)
        detector = select_blob_detector(registry, blob_store, "devstoreaccount1")
        assert isinstance(detector, AnalyticsLogBlobDetector)

    def test_any_development_container_forces_scan(self, handle_provider, blob_store):
        snapshot = make_snapshot(
            make_blob_trigger("in/{name}"),
            make_blob_trigger("local/{name}", connection="UseDevelopmentStorage=true"),
        )
        registry = TriggerRegistry(snapshot, handle_provider)
        detector = select_blob_detector(registry, blob_store, "devstoreaccount1")
        assert isinstance(detector, ContainerScanBlobDetector)
        assert detector.kind == "container_scan"
