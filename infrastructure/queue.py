# ============================================================================
# CLAUDE CONTEXT - QUEUE STORE
# ============================================================================
# STATUS: Infrastructure - Azure Storage Queue adapter for queue triggers
# PURPOSE: Dequeue one visible message at a time and delete it after a successful invocation
# EXPORTS: IQueueStore, QueueStore
# INTERFACES: IQueueStore for dependency injection (tests use an in-memory store)
# PYDANTIC_MODELS: None - returns QueueItem dataclasses
# DEPENDENCIES: azure-storage-queue, azure-core, util_logger
# SOURCE: Storage queues named by QueueTrigger.queue_name
# SCOPE: Used by PollQueueCommand, one call per timer tick
# VALIDATION: Connectivity faults translated to TransientStoreError
# PATTERNS: Repository, client caching per queue
# ENTRY_POINTS: QueueStore(visibility_timeout=30).dequeue_visible(queue_handle)
# ============================================================================

"""
Queue Store Implementation

Storage queues deliver at-least-once: a dequeued message stays invisible
for the visibility timeout and reappears unless deleted. The poller
deletes only after the invoker returns, so a crash or failed invocation
leads to redelivery.

Message bodies are returned as text. Queues written by the Functions
runtime carry base64 bodies; pass base64_messages=True to decode them with
the SDK's TextBase64DecodePolicy.

Usage:
    store = QueueStore(visibility_timeout=30)
    item = store.dequeue_visible(queue_handle)
    if item:
        ...
        store.delete(queue_handle, item)
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.queue import QueueClient, TextBase64DecodePolicy

from config.defaults import QueuePollDefaults
from core.models import QueueHandle, QueueItem
from exceptions import TransientStoreError, is_transient_azure_error
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "QueueStore")


class IQueueStore(ABC):
    """
    Interface for the queue operations queue triggers need.
    """

    @abstractmethod
    def dequeue_visible(self, queue: QueueHandle) -> Optional[QueueItem]:
        """Take one visible message, hiding it for the visibility timeout"""
        pass

    @abstractmethod
    def delete(self, queue: QueueHandle, item: QueueItem) -> None:
        """Delete a message after successful processing"""
        pass


class QueueStore(IQueueStore):
    """
    azure-storage-queue backed store.

    Queue clients are created lazily and cached per queue key. Missing
    queues are treated as empty rather than created; the listener only
    consumes.
    """

    def __init__(self, visibility_timeout: int = QueuePollDefaults.VISIBILITY_TIMEOUT_SECONDS,
                 base64_messages: bool = False):
        self.visibility_timeout = visibility_timeout
        self.base64_messages = base64_messages
        self._queue_clients: Dict[str, QueueClient] = {}

    def _get_queue_client(self, queue: QueueHandle) -> QueueClient:
        """
        Get or create a queue client.

        Args:
            queue: Resolved queue handle

        Returns:
            Cached or newly created queue client
        """
        cache_key = str(queue.key)
        if cache_key not in self._queue_clients:
            logger.debug(f"📦 Creating queue client for: {cache_key}")
            kwargs = {}
            if self.base64_messages:
                kwargs["message_decode_policy"] = TextBase64DecodePolicy()
            self._queue_clients[cache_key] = QueueClient(
                account_url=queue.account.queue_endpoint,
                queue_name=queue.name,
                credential=queue.account.credential,
                **kwargs
            )
        return self._queue_clients[cache_key]

    def dequeue_visible(self, queue: QueueHandle) -> Optional[QueueItem]:
        """
        Receive at most one message.

        Returns:
            QueueItem, or None when the queue is empty or does not exist

        Raises:
            TransientStoreError: Connectivity fault
        """
        queue_client = self._get_queue_client(queue)
        try:
            message = queue_client.receive_message(visibility_timeout=self.visibility_timeout)
        except ResourceNotFoundError:
            logger.debug(f"Queue not found, treating as empty: {queue}")
            return None
        except AzureError as e:
            if is_transient_azure_error(e):
                raise TransientStoreError(f"receive_message({queue}) failed: {e}") from e
            logger.error(f"❌ Failed to receive message from {queue}: {e}")
            raise

        if message is None:
            return None

        logger.info(f"📥 Received message {message.id} from {queue} (dequeue_count={message.dequeue_count})")
        return QueueItem(
            message_id=message.id,
            pop_receipt=message.pop_receipt,
            content=message.content,
            dequeue_count=message.dequeue_count or 1,
            inserted_on=message.inserted_on,
        )

    def delete(self, queue: QueueHandle, item: QueueItem) -> None:
        """
        Delete a processed message.

        A message that is already gone (deleted by another instance after
        its visibility expired) is not an error.

        Raises:
            TransientStoreError: Connectivity fault; the message will be redelivered
        """
        queue_client = self._get_queue_client(queue)
        try:
            queue_client.delete_message(item.message_id, item.pop_receipt)
            logger.debug(f"🗑️ Deleted message {item.message_id} from {queue}")
        except ResourceNotFoundError:
            logger.warning(f"Message {item.message_id} already gone from {queue}")
        except AzureError as e:
            if is_transient_azure_error(e):
                raise TransientStoreError(f"delete_message({queue}) failed: {e}") from e
            logger.error(f"❌ Failed to delete message {item.message_id}: {e}")
            raise
