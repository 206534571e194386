# ============================================================================
# CLAUDE CONTEXT - BLOB STORE
# ============================================================================
# STATUS: Infrastructure - Azure Blob Storage adapter for the listener
# PURPOSE: Listing, last-modified lookup and analytics log access over azure-storage-blob
# EXPORTS: IBlobStore, BlobStore
# INTERFACES: IBlobStore for dependency injection (tests use an in-memory store)
# PYDANTIC_MODELS: None - returns BlobItem dataclasses
# DEPENDENCIES: azure-storage-blob, azure-core, util_logger
# SOURCE: Registered trigger containers and each account's $logs container
# SCOPE: Every blob read the listener performs
# VALIDATION: Connectivity faults translated to TransientStoreError
# PATTERNS: Repository, client caching per account and container
# ENTRY_POINTS: BlobStore(); store.list_blobs(container_handle)
# ============================================================================

"""
Blob Store - Read-only view of blob storage for change detection.

The listener never writes blobs. It needs four things:
- enumerate a container (full scan detector)
- read one blob's last-modified time (freshness decision)
- enumerate and read Storage Analytics log blobs (log detector)

Clients are cached per account and per container so repeated polls reuse
connections. Each account carries its own credential (account key, SAS
or DefaultAzureCredential) resolved by infrastructure.accounts.

Error translation:
    ResourceNotFoundError     -> None / empty (blob or container vanished)
    connectivity, 408/429/5xx -> TransientStoreError (next poll retries)
    anything else             -> propagates
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContainerClient

from config.defaults import StorageDefaults
from core.models import AccountHandle, BlobItem, ContainerHandle
from exceptions import TransientStoreError, is_transient_azure_error
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, __name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ============================================================================
# BLOB STORE INTERFACE
# ============================================================================

class IBlobStore(ABC):
    """
    Interface for the blob reads the listener performs.

    Enables dependency injection and testing of detectors and the
    listener without Azure.
    """

    @abstractmethod
    def list_blobs(self, container: ContainerHandle) -> Iterator[BlobItem]:
        """Every blob in the container"""
        pass

    @abstractmethod
    def get_last_modified_utc(self, container: ContainerHandle, blob_name: str) -> Optional[datetime]:
        """Last-modified time in UTC, None if the blob does not exist"""
        pass

    @abstractmethod
    def list_log_blobs(self, account: AccountHandle, after: Optional[str] = None) -> List[str]:
        """Analytics log blob names, ascending, strictly after the given name"""
        pass

    @abstractmethod
    def read_log_blob(self, account: AccountHandle, name: str) -> str:
        """Text of one analytics log blob"""
        pass


# ============================================================================
# BLOB STORE IMPLEMENTATION
# ============================================================================

class BlobStore(IBlobStore):
    """
    azure-storage-blob backed store.

    Usage:
        store = BlobStore()
        for item in store.list_blobs(container_handle):
            ...
    """

    def __init__(self, logs_container: str = StorageDefaults.LOGS_CONTAINER,
                 log_prefix: str = StorageDefaults.BLOB_LOG_PREFIX):
        self.logs_container = logs_container
        self.log_prefix = log_prefix
        self._service_clients: Dict[str, BlobServiceClient] = {}
        self._container_clients: Dict[str, ContainerClient] = {}

    def _get_service_client(self, account: AccountHandle) -> BlobServiceClient:
        if account.key not in self._service_clients:
            self._service_clients[account.key] = BlobServiceClient(
                account_url=account.blob_endpoint,
                credential=account.credential
            )
            logger.debug(f"Created blob service client for account: {account.account_name}")
        return self._service_clients[account.key]

    def _get_container_client(self, account: AccountHandle, container_name: str) -> ContainerClient:
        """
        Get or create cached container client.

        Args:
            account: Owning account
            container_name: Container name

        Returns:
            Cached or new ContainerClient
        """
        cache_key = f"{account.key}/{container_name}"
        if cache_key not in self._container_clients:
            self._container_clients[cache_key] = self._get_service_client(account).get_container_client(container_name)
            logger.debug(f"Created new container client for: {cache_key}")
        return self._container_clients[cache_key]

    @staticmethod
    def _translate(error: AzureError, operation: str) -> Exception:
        if is_transient_azure_error(error):
            logger.warning(f"⚠️ Transient storage fault during {operation}: {error}")
            return TransientStoreError(f"{operation} failed: {error}")
        logger.error(f"❌ Storage error during {operation}: {error}")
        return error

    # ========================================================================
    # CONTAINER OPERATIONS
    # ========================================================================

    def list_blobs(self, container: ContainerHandle) -> Iterator[BlobItem]:
        """
        Enumerate every blob in a container.

        A missing container yields nothing; it may simply not have been
        created yet.

        Raises:
            TransientStoreError: Connectivity fault while paging
        """
        container_client = self._get_container_client(container.account, container.name)
        logger.debug(f"Listing blobs in {container}")
        try:
            for properties in container_client.list_blobs():
                yield BlobItem(
                    container=container,
                    blob_name=properties.name,
                    last_modified=_as_utc(properties.last_modified),
                )
        except ResourceNotFoundError:
            logger.warning(f"Container not found, nothing to list: {container}")
        except AzureError as e:
            raise self._translate(e, f"list_blobs({container})") from e

    def get_last_modified_utc(self, container: ContainerHandle, blob_name: str) -> Optional[datetime]:
        """
        Read a blob's last-modified time.

        Returns:
            UTC datetime, or None if the blob (or its container) does not exist

        Raises:
            TransientStoreError: Connectivity fault
        """
        container_client = self._get_container_client(container.account, container.name)
        try:
            properties = container_client.get_blob_client(blob_name).get_blob_properties()
        except ResourceNotFoundError:
            logger.debug(f"Blob not found: {container}/{blob_name}")
            return None
        except AzureError as e:
            raise self._translate(e, f"get_blob_properties({container}/{blob_name})") from e
        return _as_utc(properties.last_modified)

    # ========================================================================
    # ANALYTICS LOG OPERATIONS
    # ========================================================================

    def list_log_blobs(self, account: AccountHandle, after: Optional[str] = None) -> List[str]:
        """
        List blob-service analytics log names for an account.

        Log names embed the hour (blob/YYYY/MM/DD/hhmm/NNNNNN.log), so
        lexical order is chronological.

        Args:
            account: Account whose $logs container to read
            after: Only names strictly greater than this (the watermark)

        Returns:
            Ascending list of log blob names; empty when logging is disabled
        """
        container_client = self._get_container_client(account, self.logs_container)
        try:
            names = [
                properties.name
                for properties in container_client.list_blobs(name_starts_with=self.log_prefix)
            ]
        except ResourceNotFoundError:
            logger.warning(f"No {self.logs_container} container for {account.account_name}; "
                           f"is Storage Analytics logging enabled?")
            return []
        except AzureError as e:
            raise self._translate(e, f"list_log_blobs({account.account_name})") from e

        names.sort()
        if after is not None:
            names = [name for name in names if name > after]
        return names

    def read_log_blob(self, account: AccountHandle, name: str) -> str:
        """
        Download one analytics log blob as text.

        Returns:
            Log text; empty if retention deleted the blob since it was listed
        """
        container_client = self._get_container_client(account, self.logs_container)
        try:
            data = container_client.get_blob_client(name).download_blob().readall()
        except ResourceNotFoundError:
            logger.debug(f"Log blob vanished before read: {name}")
            return ""
        except AzureError as e:
            raise self._translate(e, f"read_log_blob({account.account_name}/{name})") from e
        return data.decode("utf-8", errors="replace")
