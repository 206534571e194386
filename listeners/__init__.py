"""
Listeners Package.

Detection, scheduling and orchestration for blob, storage queue and
extension (Service Bus) triggers.

Structure:
    listener.py              # Listener - host-facing orchestrator
    registry.py              # TriggerRegistry - immutable trigger map
    blob_detectors.py        # Container scan vs analytics log detection
    analytics_log.py         # Storage Analytics log line parsing
    queue_poller.py          # Adaptive per-queue timers
    extensions.py            # ListenerExtension interface
    service_bus_extension.py # Service Bus queue triggers
    invoker.py               # ITriggerInvoke callback interface

Usage:
    from listeners import Listener
    listener = Listener.from_config(snapshot, invoker)
"""

from .invoker import ITriggerInvoke
from .registry import TriggerRegistry, QueueBinding
from .blob_detectors import (
    IBlobDetector,
    ContainerScanBlobDetector,
    AnalyticsLogBlobDetector,
    select_blob_detector
)
from .queue_poller import (
    LinearSpeedupStrategy,
    PollQueueCommand,
    IntervalSeparationTimer
)
from .extensions import ListenerExtension
from .listener import Listener

__all__ = [
    'ITriggerInvoke',
    'TriggerRegistry',
    'QueueBinding',
    'IBlobDetector',
    'ContainerScanBlobDetector',
    'AnalyticsLogBlobDetector',
    'select_blob_detector',
    'LinearSpeedupStrategy',
    'PollQueueCommand',
    'IntervalSeparationTimer',
    'ListenerExtension',
    'Listener',
]
