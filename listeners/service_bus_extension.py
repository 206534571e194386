# ============================================================================
# CLAUDE CONTEXT - SERVICE BUS EXTENSION
# ============================================================================
# STATUS: Listeners - Service Bus queue triggers as a statically registered extension
# PURPOSE: One long-polling receive worker per ServiceBusTrigger, completing or abandoning each message
# EXPORTS: ServiceBusExtension, ServiceBusReceiveWorker
# INTERFACES: ListenerExtension, ITriggerInvoke (on_new_service_bus_message)
# PYDANTIC_MODELS: ServiceBusTrigger
# DEPENDENCIES: azure-servicebus, infrastructure.service_bus
# SCOPE: Started/stopped by Listener.start_polling / stop_polling
# VALIDATION: Only ServiceBusTrigger instances are claimed
# PATTERNS: Background worker thread with stop event
# ENTRY_POINTS: Listener(..., extensions=[ServiceBusExtension(invoker, provider)])
# ============================================================================

"""
Service Bus Extension.

Service Bus receivers long-poll (max_wait_time), so there is no adaptive
timer: each worker loops receive -> invoke -> settle until stopped.

Settlement:
    invoker returns         -> complete_message (removed from queue)
    invoker raises          -> abandon_message (delivery_count increments,
                               dead-lettered by Service Bus after MaxDeliveryCount)
    stop signalled mid-batch -> abandon_message for another instance
"""

import threading
from datetime import datetime, timezone
from typing import List, Optional

from azure.servicebus.exceptions import (
    OperationTimeoutError,
    ServiceBusConnectionError,
    ServiceBusError as AzureServiceBusError,
)

from config.defaults import ServiceBusDefaults
from config.queue_config import ServiceBusConfig
from core.models import PollContext, ServiceBusTrigger
from exceptions import ConfigurationError, ServiceBusError
from util_logger import LoggerFactory, ComponentType

from .extensions import ListenerExtension
from .invoker import ITriggerInvoke

logger = LoggerFactory.create_logger(ComponentType.EXTENSION, "ServiceBusExtension")


class ServiceBusReceiveWorker:
    """
    Background worker that receives from one Service Bus queue in a separate thread.
    """

    def __init__(self, trigger: ServiceBusTrigger, invoker, client_provider,
                 config: ServiceBusConfig, context: PollContext,
                 join_timeout: float = ServiceBusDefaults.STOP_JOIN_TIMEOUT_SECONDS):
        self.trigger = trigger
        self.invoker = invoker
        self.client_provider = client_provider
        self.config = config
        self.context = context
        self.join_timeout = join_timeout

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._messages_processed = 0
        self._messages_failed = 0
        self._last_poll_time: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._started_at: Optional[datetime] = None

    @property
    def name(self) -> str:
        return f"sb-worker-{self.trigger.function_name}"

    def _settle(self, receiver, message, complete: bool) -> None:
        try:
            if complete:
                receiver.complete_message(message)
            else:
                receiver.abandon_message(message)
        except AzureServiceBusError as e:
            action = "complete" if complete else "abandon"
            raise ServiceBusError(f"Failed to {action} message {message.message_id}: {e}") from e

    def _process_message(self, receiver, message) -> None:
        try:
            self.invoker.on_new_service_bus_message(message, self.trigger, self.context)
        except Exception as e:
            self._messages_failed += 1
            self._last_error = f"{type(e).__name__}: {e}"
            logger.exception(
                f"[{self.name}] ❌ {self.trigger.function_name} failed for message "
                f"{message.message_id}; abandoning for retry"
            )
            self._settle(receiver, message, complete=False)
            return

        self._settle(receiver, message, complete=True)
        self._messages_processed += 1
        logger.debug(f"[{self.name}] ✅ Completed message {message.message_id}")

    def _wait_after_error(self) -> None:
        if not self._stop_event.is_set():
            self._stop_event.wait(self.config.poll_interval_on_error_seconds)

    def _run_loop(self):
        """Main receive loop (runs in background thread)."""
        self._started_at = datetime.now(timezone.utc)
        logger.info(f"[{self.name}] Starting on queue: {self.trigger.entity_path}")

        try:
            client = self.client_provider.get_client(self.trigger)
        except Exception as e:
            self._last_error = str(e)
            logger.error(f"[{self.name}] Failed to connect: {e}")
            return

        while not self._stop_event.is_set():
            try:
                with client.get_queue_receiver(
                    queue_name=self.trigger.entity_path,
                    max_wait_time=self.config.max_wait_time_seconds,
                ) as receiver:
                    self._last_poll_time = datetime.now(timezone.utc)
                    messages = receiver.receive_messages(
                        max_message_count=ServiceBusDefaults.MAX_MESSAGE_COUNT,
                        max_wait_time=self.config.max_wait_time_seconds
                    )
                    self._last_error = None

                    for message in messages:
                        if self._stop_event.is_set():
                            logger.warning(f"[{self.name}] 🛑 Stop signalled before processing; abandoning message")
                            self._settle(receiver, message, complete=False)
                            break
                        self._process_message(receiver, message)

            except (ServiceBusConnectionError, OperationTimeoutError) as e:
                self._last_error = f"{type(e).__name__}: {e}"
                logger.warning(f"[{self.name}] Transient error: {self._last_error}")
                self._wait_after_error()

            except (AzureServiceBusError, ServiceBusError) as e:
                self._last_error = f"{type(e).__name__}: {e}"
                logger.error(f"[{self.name}] Service Bus error: {self._last_error}")
                self._wait_after_error()

            except Exception as e:
                self._last_error = f"{type(e).__name__}: {e}"
                logger.exception(f"[{self.name}] Unexpected error")
                self._wait_after_error()

        logger.info(f"[{self.name}] 🛑 Stopped; messages processed this session: {self._messages_processed}")

    def start(self):
        """Start the background worker thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning(f"[{self.name}] Already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name=self.name, daemon=True)
        self._thread.start()

    def signal_stop(self) -> None:
        """Ask the loop to exit after the current receive; does not wait."""
        self._stop_event.set()

    def join(self) -> bool:
        """Wait up to join_timeout for the thread. Returns True once it has exited."""
        if self._thread is not None:
            self._thread.join(timeout=self.join_timeout)
            if self._thread.is_alive():
                logger.warning(f"[{self.name}] Still running after {self.join_timeout}s")
                return False
            self._thread = None
        return True

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stop(self) -> bool:
        """Stop the background worker thread."""
        self.signal_stop()
        return self.join()

    def get_status(self) -> dict:
        """Get current worker status."""
        return {
            "function_name": self.trigger.function_name,
            "queue_name": self.trigger.entity_path,
            "running": self.is_running,
            "messages_processed": self._messages_processed,
            "messages_failed": self._messages_failed,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "last_poll_time": self._last_poll_time.isoformat() if self._last_poll_time else None,
            "last_error": self._last_error,
        }


class ServiceBusExtension(ListenerExtension):
    """
    Handles ServiceBusTrigger for the listener.

    Usage:
        extension = ServiceBusExtension(invoker, ServiceBusClientProvider(config.service_bus))
        listener = Listener(snapshot, invoker, ..., extensions=[extension])
    """

    name = "service_bus"

    def __init__(self, invoker, client_provider, config: Optional[ServiceBusConfig] = None,
                 join_timeout: float = ServiceBusDefaults.STOP_JOIN_TIMEOUT_SECONDS):
        self.invoker = invoker
        self.client_provider = client_provider
        self.config = config or ServiceBusConfig()
        self.join_timeout = join_timeout
        self._triggers: List[ServiceBusTrigger] = []
        self._workers: List[ServiceBusReceiveWorker] = []

    @property
    def triggers(self) -> List[ServiceBusTrigger]:
        return list(self._triggers)

    def map_trigger(self, trigger) -> bool:
        """
        Claim a ServiceBusTrigger.

        Raises:
            ConfigurationError: The invoker has no Service Bus hook, or the
                trigger's connection does not resolve
        """
        if not isinstance(trigger, ServiceBusTrigger):
            return False
        if type(self.invoker).on_new_service_bus_message is ITriggerInvoke.on_new_service_bus_message:
            raise ConfigurationError(
                f"{type(self.invoker).__name__} does not implement on_new_service_bus_message; "
                f"cannot serve Service Bus trigger '{trigger.function_name}'"
            )
        self.client_provider.validate(trigger)
        self._triggers.append(trigger)
        logger.debug(f"Mapped Service Bus trigger {trigger.function_name} -> {trigger.entity_path}")
        return True

    def start_polling(self, context: PollContext) -> None:
        if self._workers:
            logger.warning("Service Bus extension already polling")
            return
        self._workers = [
            ServiceBusReceiveWorker(trigger, self.invoker, self.client_provider, self.config, context,
                                    join_timeout=self.join_timeout)
            for trigger in self._triggers
        ]
        for worker in self._workers:
            worker.start()
        logger.info(f"Service Bus extension started {len(self._workers)} workers")

    def stop_polling(self) -> None:
        # Signal every worker before waiting on any of them
        for worker in self._workers:
            worker.signal_stop()
        still_running = [worker.trigger for worker in self._workers if not worker.join()]
        self._workers = []
        self.client_provider.close_all(keep_triggers=still_running)
        logger.info("Service Bus extension stopped")

    def get_status(self) -> dict:
        return {
            "name": self.name,
            "triggers": len(self._triggers),
            "workers": [worker.get_status() for worker in self._workers],
        }
