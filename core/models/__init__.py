"""
Core Data Models Package.

Contains pure data structures without business logic.
All business logic is in the core.logic package.

Exports:
    BlobPath: Container/blob path or pattern
    BlobTrigger, QueueTrigger, ServiceBusTrigger, TriggerSnapshot: Trigger descriptors
    AccountHandle, ContainerHandle, QueueHandle: Resolved storage identities
    ContainerKey, QueueKey: Registry keys
    BlobItem, QueueItem, PollContext: Runtime items handed to the invoker
    TimerState: Adaptive queue timer state
"""

# Paths
from .blob_path import BlobPath

# Trigger descriptors
from .triggers import (
    BlobTrigger,
    QueueTrigger,
    ServiceBusTrigger,
    Trigger,
    TriggerSnapshot
)

# Storage identities
from .handles import (
    AccountHandle,
    ContainerHandle,
    ContainerKey,
    QueueHandle,
    QueueKey
)

# Runtime items
from .items import (
    BlobItem,
    QueueItem,
    PollContext
)

from .timer import TimerState

__all__ = [
    'BlobPath',
    'BlobTrigger',
    'QueueTrigger',
    'ServiceBusTrigger',
    'Trigger',
    'TriggerSnapshot',
    'AccountHandle',
    'ContainerHandle',
    'ContainerKey',
    'QueueHandle',
    'QueueKey',
    'BlobItem',
    'QueueItem',
    'PollContext',
    'TimerState',
]
