# ============================================================================
# CLAUDE CONTEXT - LISTENER
# ============================================================================
# STATUS: Listeners - orchestrator exposed to the host
# PURPOSE: Compose registry, blob detector, freshness check, queue timers and extensions
# EXPORTS: Listener
# INTERFACES: ITriggerInvoke (callbacks), ListenerExtension (plugins)
# PYDANTIC_MODELS: TriggerSnapshot (input)
# DEPENDENCIES: listeners.*, core.logic, infrastructure (via injected stores)
# SCOPE: One Listener per host process
# VALIDATION: Invoker type checked at construction; unclaimed extension triggers rejected
# PATTERNS: Facade, Strategy (blob detector), background workers (queue timers)
# ENTRY_POINTS: Listener.from_config(snapshot, invoker); listener.poll(); listener.start_polling()
# ============================================================================

"""
Listener - the host-facing entry point.

Blob triggers are caller-paced: the host calls poll() on whatever
schedule it likes, and may call invoke_triggers_for_blob() when it
already knows a blob changed (for example from an Event Grid
notification). Queue triggers run on their own timers between
start_polling() and stop_polling().

Per candidate blob:
    1. Re-read the input's last-modified time; a vanished blob is skipped.
    2. For each trigger on the container, in registration order:
       match the input pattern, check output freshness, invoke.
    3. An UnresolvedRouteError affects only that trigger.

Only TransientStoreError is swallowed (the next poll retries). Invoker
exceptions propagate to the caller of poll().

States:
    constructed -> polling -> stopped -> polling -> ...
"""

import dataclasses
from datetime import datetime
from typing import List, Optional

from config import AppConfig, get_config
from config.queue_config import QueuePollConfig
from config.storage_config import StorageConfig
from core.logic import match, should_invoke_trigger
from core.models import BlobItem, BlobPath, ContainerHandle, PollContext, TriggerSnapshot
from exceptions import (
    ConfigurationError,
    ContractViolationError,
    TransientStoreError,
    UnresolvedRouteError,
)
from util_logger import LoggerFactory, ComponentType, log_exceptions

from .blob_detectors import IBlobDetector, select_blob_detector
from .extensions import ListenerExtension
from .invoker import ITriggerInvoke
from .queue_poller import IntervalSeparationTimer, LinearSpeedupStrategy, PollQueueCommand
from .registry import TriggerRegistry

logger = LoggerFactory.create_logger(ComponentType.LISTENER, "Listener")


class Listener:
    """
    Detection-and-decision engine for blob, queue and extension triggers.

    Usage:
        listener = Listener.from_config(snapshot, invoker)
        listener.start_polling()
        while running:
            listener.poll()
            time.sleep(poll_interval)
        listener.stop_polling()
    """

    def __init__(
        self,
        snapshot: TriggerSnapshot,
        invoker: ITriggerInvoke,
        handle_provider,
        blob_store,
        queue_store,
        queue_config: Optional[QueuePollConfig] = None,
        storage_config: Optional[StorageConfig] = None,
        extensions: Optional[List[ListenerExtension]] = None,
        detector: Optional[IBlobDetector] = None,
        debug_mode: bool = False,
    ):
        if not isinstance(invoker, ITriggerInvoke):
            raise ContractViolationError(
                f"invoker must implement ITriggerInvoke, got {type(invoker).__name__}"
            )

        self.invoker = invoker
        self.handle_provider = handle_provider
        self.blob_store = blob_store
        self.queue_store = queue_store
        self.queue_config = queue_config or QueuePollConfig()
        self.storage_config = storage_config or StorageConfig()
        self.debug_mode = debug_mode

        self.registry = TriggerRegistry(snapshot, handle_provider)

        self.extensions = list(extensions or [])
        for trigger in self.registry.extension_triggers:
            if not any(extension.map_trigger(trigger) for extension in self.extensions):
                raise ConfigurationError(
                    f"No registered extension handles {type(trigger).__name__} "
                    f"for function '{trigger.function_name}'"
                )

        self.detector = detector or select_blob_detector(
            self.registry, blob_store, self.storage_config.dev_account_name
        )

        self._timers: List[IntervalSeparationTimer] = []
        self._state = "constructed"
        logger.info(f"Listener constructed (detector={self.detector.kind}, "
                    f"extensions={[e.name for e in self.extensions]})")

    @classmethod
    def from_config(cls, snapshot: TriggerSnapshot, invoker: ITriggerInvoke,
                    config: Optional[AppConfig] = None,
                    extensions: Optional[List[ListenerExtension]] = None) -> "Listener":
        """
        Build a Listener with Azure-backed stores.

        Shipped extensions are added automatically when the snapshot
        contains Service Bus triggers and no extensions were passed.
        """
        from infrastructure.factory import RepositoryFactory
        from .extensions import default_extensions

        config = config or get_config()
        if extensions is None:
            extensions = default_extensions(invoker, config) if snapshot.service_bus_triggers() else []

        return cls(
            snapshot,
            invoker,
            queue_config=config.queues,
            storage_config=config.storage,
            extensions=extensions,
            debug_mode=config.debug_mode,
            **RepositoryFactory.create_stores(config),
        )

    # ========================================================================
    # BLOB TRIGGERS
    # ========================================================================

    @log_exceptions(logger=logger)
    def poll(self, context: Optional[PollContext] = None) -> None:
        """
        Run one blob detection pass.

        Raises:
            Whatever the invoker raises; transient storage faults are logged and dropped
        """
        context = context or PollContext()
        try:
            self.detector.poll(self._on_new_blob, context)
        except TransientStoreError as e:
            logger.debug(f"Poll interrupted by transient storage fault, will retry next poll: {e}")

    @log_exceptions(logger=logger)
    def invoke_triggers_for_blob(self, account_name: str, container_name: str, blob_name: str,
                                 context: Optional[PollContext] = None) -> None:
        """
        Evaluate triggers for one blob the caller already knows about.

        Account name is matched case-insensitively, container name exactly.
        Unregistered containers are ignored. Calling this twice for an
        unchanged blob invokes nothing the second time once the outputs exist.
        """
        container = self.registry.find_container(account_name, container_name)
        if container is None:
            logger.debug(f"Hint for unregistered container {account_name}/{container_name} ignored")
            return

        context = context or PollContext()
        try:
            self._on_new_blob(BlobItem(container=container, blob_name=blob_name), context)
        except TransientStoreError as e:
            logger.debug(f"Hint for {container}/{blob_name} dropped on transient fault: {e}")

    def _on_new_blob(self, blob: BlobItem, context: PollContext) -> None:
        input_time = self.blob_store.get_last_modified_utc(blob.container, blob.blob_name)
        if input_time is None:
            # Deleted between listing and now
            return

        blob = dataclasses.replace(blob, last_modified=input_time)
        actual = blob.path

        for trigger in self.registry.blob_triggers_for(blob.container):
            route_values = match(trigger.blob_input, actual)
            if route_values is None:
                continue

            try:
                should_invoke = should_invoke_trigger(
                    trigger,
                    route_values,
                    input_time,
                    self._modified_time_lookup(blob.container),
                )
            except UnresolvedRouteError as e:
                logger.error(f"Skipping {trigger.function_name} for {actual}: {e}")
                continue

            if self.debug_mode:
                logger.debug(f"{trigger.function_name} on {actual}: invoke={should_invoke}",
                             extra={'custom_dimensions': {'route_values': route_values}})

            if should_invoke:
                logger.info(f"Invoking {trigger.function_name} for {actual}")
                self.invoker.on_new_blob(blob, trigger, context)

    def _modified_time_lookup(self, input_container: ContainerHandle):
        # Outputs live in the same account as the input
        account = input_container.account

        def get_modified_time(path: BlobPath) -> Optional[datetime]:
            container = self.handle_provider.get_container(account, path.container_name)
            return self.blob_store.get_last_modified_utc(container, path.blob_name)

        return get_modified_time

    # ========================================================================
    # QUEUE TRIGGERS AND EXTENSIONS
    # ========================================================================

    def start_polling(self, context: Optional[PollContext] = None) -> None:
        """
        Start one timer per queue trigger, then every extension.

        Each start builds fresh timers; nothing carries over from a
        previous start/stop cycle.
        """
        if self._timers:
            logger.warning("start_polling called while already polling")
            return

        context = context or PollContext()
        for binding in self.registry.queue_bindings:
            command = PollQueueCommand(binding.queue, binding.trigger, self.queue_store, self.invoker, context)
            strategy = LinearSpeedupStrategy(
                normal_seconds=self.queue_config.normal_interval_seconds,
                minimum_seconds=self.queue_config.minimum_interval_seconds,
                divisor=self.queue_config.speedup_divisor,
            )
            timer = IntervalSeparationTimer(command, strategy, join_timeout=self.queue_config.stop_join_timeout_seconds)
            self._timers.append(timer)
            timer.start(execute_first=False)

        for extension in self.extensions:
            extension.start_polling(context)

        self._state = "polling"
        logger.info(f"Polling started: {len(self._timers)} queue timers, {len(self.extensions)} extensions")

    def stop_polling(self) -> None:
        """
        Stop every queue timer and extension.

        In-flight ticks complete; no new tick starts once this is called.
        """
        for timer in self._timers:
            timer.signal_stop()
        for timer in self._timers:
            timer.stop()
        self._timers = []

        for extension in self.extensions:
            extension.stop_polling()

        self._state = "stopped"
        logger.info("Polling stopped")

    def get_status(self) -> dict:
        """Get current listener status."""
        return {
            "state": self._state,
            "detector": self.detector.kind,
            "containers": len(self.registry.containers),
            "queue_triggers": len(self.registry.queue_bindings),
            "timers": [timer.get_status() for timer in self._timers],
            "extensions": [extension.get_status() for extension in self.extensions],
        }
