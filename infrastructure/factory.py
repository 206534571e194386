# ============================================================================
# CLAUDE CONTEXT - REPOSITORY FACTORY
# ============================================================================
# STATUS: Infrastructure - Central factory for the listener's stores
# PURPOSE: Build blob/queue stores, the account resolver and the Service Bus client provider from AppConfig
# EXPORTS: RepositoryFactory (static class with factory methods)
# INTERFACES: Creates instances implementing IBlobStore, IQueueStore
# PYDANTIC_MODELS: None - reads AppConfig
# DEPENDENCIES: infrastructure.*, config
# SOURCE: AppConfig (AzureWebJobsStorage, queue and Service Bus settings)
# SCOPE: Listener construction
# VALIDATION: Connection validation handled by the individual stores
# PATTERNS: Factory pattern, Dependency Injection
# ENTRY_POINTS: RepositoryFactory.create_stores(), create_handle_provider()
# ============================================================================

"""
Repository Factory - Central Creation Point

Single point for constructing the Azure-backed stores the listener
consumes. Tests bypass this factory and hand in-memory stores directly
to the Listener.
"""

from typing import Any, Dict, Optional

from config import AppConfig, get_config
from util_logger import LoggerFactory, ComponentType

from .accounts import StorageHandleProvider
from .blob import BlobStore
from .queue import QueueStore
from .service_bus import ServiceBusClientProvider

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "RepositoryFactory")


class RepositoryFactory:
    """
    Factory for creating store instances.

    Every method takes an optional AppConfig and falls back to the
    get_config() singleton.
    """

    @staticmethod
    def create_stores(config: Optional[AppConfig] = None) -> Dict[str, Any]:
        """
        Create every store the listener needs.

        Returns:
            Dictionary with handle_provider, blob_store and queue_store

        Example:
            stores = RepositoryFactory.create_stores()
            listener = Listener(snapshot, invoker, **stores)
        """
        config = config or get_config()
        logger.info("🏭 Creating storage stores")

        stores = {
            'handle_provider': RepositoryFactory.create_handle_provider(config),
            'blob_store': RepositoryFactory.create_blob_store(config),
            'queue_store': RepositoryFactory.create_queue_store(config),
        }

        logger.info("✅ All stores created successfully")
        return stores

    @staticmethod
    def create_handle_provider(config: Optional[AppConfig] = None) -> StorageHandleProvider:
        """
        Create the account resolver.

        Triggers without their own connection string resolve against
        AzureWebJobsStorage.
        """
        config = config or get_config()
        return StorageHandleProvider(default_connection_string=config.storage.connection_string)

    @staticmethod
    def create_blob_store(config: Optional[AppConfig] = None) -> BlobStore:
        config = config or get_config()
        return BlobStore(
            logs_container=config.storage.logs_container,
            log_prefix=config.storage.blob_log_prefix,
        )

    @staticmethod
    def create_queue_store(config: Optional[AppConfig] = None) -> QueueStore:
        config = config or get_config()
        return QueueStore(visibility_timeout=config.queues.visibility_timeout_seconds)

    @staticmethod
    def create_service_bus_client_provider(config: Optional[AppConfig] = None) -> ServiceBusClientProvider:
        """
        Create the Service Bus client provider used by the Service Bus extension.
        """
        config = config or get_config()
        logger.info("🏭 Creating Service Bus client provider")
        return ServiceBusClientProvider(config.service_bus)
