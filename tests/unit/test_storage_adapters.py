"""
Azure-backed BlobStore and QueueStore with the SDK clients mocked.

Checks the error translation contract: not-found is a normal answer,
connectivity faults become TransientStoreError, everything else
propagates unchanged.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest import mock

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError, ServiceRequestError

from core.models import QueueItem
from exceptions import TransientStoreError
from infrastructure.accounts import StorageHandleProvider, parse_account
from infrastructure.blob import BlobStore
from infrastructure.queue import QueueStore


@pytest.fixture
def account():
    return parse_account("acct", credential_factory=lambda: None)


@pytest.fixture
def container(account):
    return StorageHandleProvider().get_container(account, "in")


@pytest.fixture
def queue(account):
    return StorageHandleProvider().get_queue(account, "orders")


@pytest.fixture
def container_client():
    with mock.patch("infrastructure.blob.BlobServiceClient") as service_cls:
        yield service_cls.return_value.get_container_client.return_value


@pytest.fixture
def queue_client():
    with mock.patch("infrastructure.queue.QueueClient") as queue_cls:
        yield queue_cls.return_value


class TestBlobStore:

    def test_list_blobs_normalises_to_utc(self, container, container_client):
        container_client.list_blobs.return_value = [
            SimpleNamespace(name="a.txt", last_modified=datetime(2024, 1, 1, 12, 0)),
        ]
        items = list(BlobStore().list_blobs(container))
        assert items[0].blob_name == "a.txt"
        assert items[0].last_modified == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_missing_container_lists_nothing(self, container, container_client):
        container_client.list_blobs.side_effect = ResourceNotFoundError("no container")
        assert list(BlobStore().list_blobs(container)) == []

    def test_missing_blob_has_no_modified_time(self, container, container_client):
        container_client.get_blob_client.return_value.get_blob_properties.side_effect = ResourceNotFoundError("gone")
        assert BlobStore().get_last_modified_utc(container, "a.txt") is None

    def test_connectivity_fault_is_transient(self, container, container_client):
        container_client.get_blob_client.return_value.get_blob_properties.side_effect = ServiceRequestError("reset")
        with pytest.raises(TransientStoreError):
            BlobStore().get_last_modified_utc(container, "a.txt")

    def test_other_errors_propagate(self, container, container_client):
        error = HttpResponseError(message="forbidden")
        container_client.get_blob_client.return_value.get_blob_properties.side_effect = error
        with pytest.raises(HttpResponseError):
            BlobStore().get_last_modified_utc(container, "a.txt")

    def test_log_blobs_sorted_and_after_watermark(self, account, container_client):
        container_client.list_blobs.return_value = [
            SimpleNamespace(name="blob/2024/01/01/0100/000000.log"),
            SimpleNamespace(name="blob/2024/01/01/0000/000001.log"),
            SimpleNamespace(name="blob/2024/01/01/0000/000000.log"),
        ]
        names = BlobStore().list_log_blobs(account, after="blob/2024/01/01/0000/000000.log")
        assert names == ["blob/2024/01/01/0000/000001.log", "blob/2024/01/01/0100/000000.log"]
        container_client.list_blobs.assert_called_once_with(name_starts_with="blob/")

    def test_logging_disabled_means_no_logs(self, account, container_client):
        container_client.list_blobs.side_effect = ResourceNotFoundError("no $logs")
        assert BlobStore().list_log_blobs(account) == []

    def test_read_log_blob(self, account, container_client):
        download = container_client.get_blob_client.return_value.download_blob.return_value
        download.readall.return_value = b"line one\nline two"
        assert BlobStore().read_log_blob(account, "x.log").splitlines() == ["line one", "line two"]


class TestQueueStore:

    def test_empty_queue(self, queue, queue_client):
        queue_client.receive_message.return_value = None
        assert QueueStore().dequeue_visible(queue) is None

    def test_receive_uses_visibility_timeout(self, queue, queue_client):
        queue_client.receive_message.return_value = SimpleNamespace(
            id="m1", pop_receipt="p1", content="hello", dequeue_count=2, inserted_on=None
        )
        item = QueueStore(visibility_timeout=45).dequeue_visible(queue)
        queue_client.receive_message.assert_called_once_with(visibility_timeout=45)
        assert item == QueueItem(message_id="m1", pop_receipt="p1", content="hello", dequeue_count=2)

    def test_missing_queue_is_empty(self, queue, queue_client):
        queue_client.receive_message.side_effect = ResourceNotFoundError("no queue")
        assert QueueStore().dequeue_visible(queue) is None

    def test_receive_fault_is_transient(self, queue, queue_client):
        queue_client.receive_message.side_effect = ServiceRequestError("reset")
        with pytest.raises(TransientStoreError):
            QueueStore().dequeue_visible(queue)

    def test_delete_of_vanished_message_is_quiet(self, queue, queue_client):
        queue_client.delete_message.side_effect = ResourceNotFoundError("gone")
        QueueStore().delete(queue, QueueItem(message_id="m1", pop_receipt="p1", content="x"))

    def test_delete_fault_is_transient(self, queue, queue_client):
        queue_client.delete_message.side_effect = ServiceRequestError("reset")
        with pytest.raises(TransientStoreError):
            QueueStore().delete(queue, QueueItem(message_id="m1", pop_receipt="p1", content="x"))
