"""
Runtime Items.

Things the listener hands to the invoker: a discovered blob, a dequeued
storage queue message, and the host-supplied poll context that travels
with them. Plain dataclasses; none of these cross a serialization
boundary.

Exports:
    BlobItem: A blob discovered by a detector
    QueueItem: A message dequeued from a storage queue
    PollContext: Cancellation event plus free-form host properties
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .blob_path import BlobPath
from .handles import ContainerHandle


@dataclass(frozen=True)
class BlobItem:
    """
    A candidate blob.

    last_modified is filled in when the listing already carried it; the
    listener always re-reads it before deciding, since the blob may have
    changed or vanished since listing.
    """

    container: ContainerHandle
    blob_name: str
    last_modified: Optional[datetime] = field(default=None, compare=False)

    @property
    def account_name(self) -> str:
        return self.container.account.account_name

    @property
    def container_name(self) -> str:
        return self.container.name

    @property
    def path(self) -> BlobPath:
        return BlobPath.concrete(self.container.name, self.blob_name)


@dataclass(frozen=True)
class QueueItem:
    """A storage queue message, held invisible for the visibility timeout."""

    message_id: str
    pop_receipt: str
    content: str
    dequeue_count: int = 1
    inserted_on: Optional[datetime] = None


@dataclass
class PollContext:
    """
    Host runtime context passed through to the invoker untouched.

    cancel_event is checked between items; a set event stops the current
    poll early without error.
    """

    cancel_event: threading.Event = field(default_factory=threading.Event)
    correlation_id: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_cancelled(self) -> bool:
        return self.cancel_event.is_set()
