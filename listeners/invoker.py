"""
Trigger Invoker Interface.

The job-execution runtime implements this. The listener only decides
that a function should run; binding parameters and executing the
function happen on the other side of this interface.

Exports:
    ITriggerInvoke: Abstract invoker
"""

from abc import ABC, abstractmethod
from typing import Any

from core.models import (
    BlobItem,
    BlobTrigger,
    PollContext,
    QueueItem,
    QueueTrigger,
    ServiceBusTrigger,
)


class ITriggerInvoke(ABC):
    """
    Callbacks the listener makes when a trigger fires.

    Exceptions raised from on_new_blob propagate to whoever called
    Listener.poll; exceptions from the queue callbacks leave the message
    for redelivery.
    """

    @abstractmethod
    def on_new_blob(self, blob: BlobItem, trigger: BlobTrigger, context: PollContext) -> None:
        """Input blob is newer than its outputs (or has none)"""
        pass

    @abstractmethod
    def on_new_queue_item(self, item: QueueItem, trigger: QueueTrigger, context: PollContext) -> None:
        """A storage queue message was dequeued"""
        pass

    def on_new_service_bus_message(self, message: Any, trigger: ServiceBusTrigger, context: PollContext) -> None:
        """
        A Service Bus message was received.

        Only needed when the Service Bus extension is registered.
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not handle Service Bus triggers"
        )
