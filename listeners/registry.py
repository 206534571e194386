# ============================================================================
# CLAUDE CONTEXT - TRIGGER REGISTRY
# ============================================================================
# STATUS: Listeners - immutable trigger map built once per Listener
# PURPOSE: Group blob triggers by container and queue triggers by queue, resolving every handle up front
# EXPORTS: TriggerRegistry, QueueBinding
# INTERFACES: None
# PYDANTIC_MODELS: TriggerSnapshot (input)
# DEPENDENCIES: core.models, infrastructure.accounts
# SCOPE: Shared read-only by the blob detectors, the listener and every queue timer
# VALIDATION: Unknown trigger objects raise ContractViolationError
# PATTERNS: Build-once registry
# ENTRY_POINTS: TriggerRegistry(snapshot, handle_provider)
# ============================================================================

"""
Trigger Registry.

Built once from a TriggerSnapshot and never mutated afterwards, so
timer threads can read it without locks. Containers are deduplicated by
ContainerKey (account name case-insensitive, container name exact);
triggers inside one container keep registration order, which is the
order they are evaluated in.

Triggers that are neither blob nor queue triggers are collected in
extension_triggers for the listener to hand to its extensions.
"""

from typing import Dict, List, NamedTuple, Optional

from core.models import (
    BlobTrigger,
    ContainerHandle,
    ContainerKey,
    QueueHandle,
    QueueTrigger,
    ServiceBusTrigger,
    TriggerSnapshot,
)
from exceptions import ContractViolationError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.LISTENER, "TriggerRegistry")


class QueueBinding(NamedTuple):
    queue: QueueHandle
    trigger: QueueTrigger


class TriggerRegistry:
    """
    Resolved trigger map.

    Usage:
        registry = TriggerRegistry(snapshot, StorageHandleProvider(conn))
        for container in registry.containers:
            for trigger in registry.blob_triggers_for(container):
                ...
    """

    def __init__(self, snapshot: TriggerSnapshot, handle_provider):
        self._containers: Dict[ContainerKey, ContainerHandle] = {}
        self._blob_triggers: Dict[ContainerKey, List[BlobTrigger]] = {}
        self._queue_bindings: List[QueueBinding] = []
        self._extension_triggers: list = []

        for trigger in snapshot.all_triggers():
            if isinstance(trigger, BlobTrigger):
                account = handle_provider.get_account(trigger.storage_connection_string)
                container = handle_provider.get_container(account, trigger.blob_input.container_name)
                # First handle wins; later triggers on the same container share it
                self._containers.setdefault(container.key, container)
                self._blob_triggers.setdefault(container.key, []).append(trigger)
            elif isinstance(trigger, QueueTrigger):
                account = handle_provider.get_account(trigger.storage_connection_string)
                queue = handle_provider.get_queue(account, trigger.queue_name)
                self._queue_bindings.append(QueueBinding(queue, trigger))
            elif isinstance(trigger, ServiceBusTrigger):
                self._extension_triggers.append(trigger)
            else:
                raise ContractViolationError(
                    f"Unknown trigger type in snapshot: {type(trigger).__name__}"
                )

        logger.info(
            f"Registry built: {len(self._containers)} containers, "
            f"{sum(len(t) for t in self._blob_triggers.values())} blob triggers, "
            f"{len(self._queue_bindings)} queue triggers, "
            f"{len(self._extension_triggers)} extension triggers"
        )

    @property
    def containers(self) -> List[ContainerHandle]:
        """Distinct containers in first-registration order."""
        return list(self._containers.values())

    @property
    def queue_bindings(self) -> List[QueueBinding]:
        return list(self._queue_bindings)

    @property
    def extension_triggers(self) -> list:
        return list(self._extension_triggers)

    def blob_triggers_for(self, container: ContainerHandle) -> List[BlobTrigger]:
        """Triggers registered on the container, in registration order."""
        return list(self._blob_triggers.get(container.key, ()))

    def find_container(self, account_name: str, container_name: str) -> Optional[ContainerHandle]:
        """
        Look up a registered container.

        Account name is compared case-insensitively, container name exactly.
        """
        key = ContainerKey(account_name=account_name, container_name=container_name)
        return self._containers.get(key)

    def uses_development_storage(self, dev_account_name: str) -> bool:
        """True if any registered container lives in the local development account."""
        dev_key = dev_account_name.lower()
        return any(key.account_name == dev_key for key in self._containers)
