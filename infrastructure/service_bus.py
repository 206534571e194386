# ============================================================================
# CLAUDE CONTEXT - SERVICE BUS CLIENTS
# ============================================================================
# STATUS: Infrastructure - Azure Service Bus client resolution for the Service Bus extension
# PURPOSE: Build and cache ServiceBusClient instances per connection (connection string or namespace)
# EXPORTS: ServiceBusClientProvider
# INTERFACES: None
# PYDANTIC_MODELS: ServiceBusTrigger (input)
# DEPENDENCIES: azure-servicebus, azure-identity, config
# SOURCE: Azure Service Bus via connection string or DefaultAzureCredential
# SCOPE: Receive side only; the listener never sends
# VALIDATION: Missing connection raises ConfigurationError
# PATTERNS: Client cache, identity-first authentication
# ENTRY_POINTS: ServiceBusClientProvider(config.service_bus).get_client(trigger)
# ============================================================================

"""
Service Bus Client Provider

Authentication Priority (Identity-First):
    1. Trigger's own namespace, or configured namespace -> DefaultAzureCredential
    2. Trigger's own connection string, or ServiceBusConnection

A trigger that names a connection string explicitly always uses it.
Clients are cached per connection so triggers sharing a namespace share
one AMQP connection. Receivers are NOT cached; they are opened per
receive call and closed by their context manager.
"""

import threading
from typing import Dict, Iterable, Optional

from azure.identity import DefaultAzureCredential
from azure.servicebus import ServiceBusClient

from config.queue_config import ServiceBusConfig
from core.models import ServiceBusTrigger
from exceptions import ConfigurationError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "ServiceBusClientProvider")


class ServiceBusClientProvider:
    """
    Resolve ServiceBusTrigger connections to cached ServiceBusClient instances.

    Shared by every receive worker of the extension, hence the lock.
    """

    def __init__(self, config: Optional[ServiceBusConfig] = None, credential_factory=DefaultAzureCredential):
        self.config = config or ServiceBusConfig()
        self._credential_factory = credential_factory
        self._clients: Dict[str, ServiceBusClient] = {}
        self._lock = threading.Lock()

    def _connection_key(self, trigger: ServiceBusTrigger) -> str:
        if trigger.service_bus_connection_string:
            return f"cs:{trigger.service_bus_connection_string}"
        namespace = trigger.namespace or self.config.namespace
        if namespace:
            return f"ns:{namespace}"
        if self.config.connection_string:
            return f"cs:{self.config.connection_string}"
        raise ConfigurationError(
            f"No Service Bus connection for function '{trigger.function_name}'. "
            f"Set SERVICE_BUS_NAMESPACE (recommended) or ServiceBusConnection"
        )

    def validate(self, trigger: ServiceBusTrigger) -> None:
        """
        Check that a trigger's connection resolves, without opening a client.

        Raises:
            ConfigurationError: Neither the trigger nor the config names a connection
        """
        self._connection_key(trigger)

    def get_client(self, trigger: ServiceBusTrigger) -> ServiceBusClient:
        """
        Get or create the client for a trigger's connection.

        Raises:
            ConfigurationError: Neither the trigger nor the config names a connection
        """
        key = self._connection_key(trigger)
        with self._lock:
            if key not in self._clients:
                kind, _, value = key.partition(":")
                if kind == "ns":
                    logger.info(f"🚌 Using Managed Identity for Service Bus namespace: {value}")
                    self._clients[key] = ServiceBusClient(
                        fully_qualified_namespace=value,
                        credential=self._credential_factory()
                    )
                else:
                    logger.warning("🔑 Using Service Bus connection string auth (prefer SERVICE_BUS_NAMESPACE)")
                    self._clients[key] = ServiceBusClient.from_connection_string(value)
            return self._clients[key]

    def close_all(self, keep_triggers: Iterable[ServiceBusTrigger] = ()) -> None:
        """
        Close every cached client; later get_client calls reopen.

        Clients used by keep_triggers stay open (their receiver may still be
        running).
        """
        keep = {self._connection_key(trigger) for trigger in keep_triggers}
        with self._lock:
            closing = [key for key in self._clients if key not in keep]
            clients = [self._clients.pop(key) for key in closing]
        if keep:
            logger.warning(f"⚠️ Leaving {len(keep)} Service Bus client(s) open for workers still running")
        for client in clients:
            try:
                client.close()
            except Exception as e:
                logger.warning(f"⚠️ Error closing Service Bus client: {e}")
