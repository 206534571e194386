# ============================================================================
# CLAUDE CONTEXT - ACCOUNT RESOLUTION
# ============================================================================
# STATUS: Infrastructure - Connection string to account handle resolution
# PURPOSE: Turn a trigger's connection string (or bare account name) into account/container/queue handles
# EXPORTS: parse_account, StorageHandleProvider
# INTERFACES: None
# PYDANTIC_MODELS: ContainerKey, QueueKey (via handles)
# DEPENDENCIES: azure-identity, config
# SCOPE: Called once per trigger while the registry is built
# VALIDATION: Malformed connection strings raise ConfigurationError
# PATTERNS: Cache per connection string
# ENTRY_POINTS: StorageHandleProvider().get_container(account, "images")
# ============================================================================

"""
Account Resolution

Accepted inputs:
    - "UseDevelopmentStorage=true" (local emulator, devstoreaccount1)
    - Full connection strings with AccountName/AccountKey or
      SharedAccessSignature, optionally with explicit BlobEndpoint/QueueEndpoint
    - A bare account name, authenticated with DefaultAzureCredential

Usage:
    provider = StorageHandleProvider()
    account = provider.get_account(trigger.storage_connection_string)
    container = provider.get_container(account, "images")
"""

from typing import Dict, Optional

from azure.identity import DefaultAzureCredential

from config.defaults import StorageDefaults
from core.models import AccountHandle, ContainerHandle, QueueHandle
from exceptions import ConfigurationError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, __name__)


def _split_connection_string(connection_string: str) -> Dict[str, str]:
    settings: Dict[str, str] = {}
    for segment in connection_string.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        name, separator, value = segment.partition("=")
        if not separator:
            raise ConfigurationError(f"Malformed connection string segment: '{name}'")
        # SAS tokens and base64 keys carry '=' in the value; partition keeps them intact
        settings[name.strip().lower()] = value.strip()
    return settings


def _development_account() -> AccountHandle:
    return AccountHandle(
        account_name=StorageDefaults.DEV_ACCOUNT_NAME,
        blob_endpoint=StorageDefaults.DEV_BLOB_ENDPOINT,
        queue_endpoint=StorageDefaults.DEV_QUEUE_ENDPOINT,
        credential={
            "account_name": StorageDefaults.DEV_ACCOUNT_NAME,
            "account_key": StorageDefaults.DEV_ACCOUNT_KEY,
        },
        connection_string="UseDevelopmentStorage=true",
    )


def _account_from_endpoint(endpoint: str, suffix: str) -> str:
    # https://myaccount.blob.core.windows.net  or  http://127.0.0.1:10000/devstoreaccount1
    host_and_path = endpoint.split("://", 1)[-1].rstrip("/")
    host, _, path = host_and_path.partition("/")
    if path:
        return path.split("/")[0]
    name, _, rest = host.lower().partition(".")
    if rest not in (f"blob.{suffix}", f"queue.{suffix}"):
        # Custom domains (CDN, private DNS) do not carry the account name
        raise ConfigurationError(
            f"Cannot infer the account name from endpoint {endpoint}; add AccountName to the connection string"
        )
    return name


def parse_account(connection_string: str, credential_factory=DefaultAzureCredential) -> AccountHandle:
    """
    Resolve a connection string or bare account name to an AccountHandle.

    Args:
        connection_string: Storage connection string or account name
        credential_factory: Called to build a token credential for bare account names

    Returns:
        AccountHandle

    Raises:
        ConfigurationError: Empty or malformed input, or an explicit endpoint on a
            custom domain without AccountName
    """
    if not connection_string or not connection_string.strip():
        raise ConfigurationError("Storage connection string is empty")

    text = connection_string.strip()

    if "=" not in text:
        account_name = text
        logger.debug(f"Resolving bare account name {account_name} with DefaultAzureCredential")
        return AccountHandle(
            account_name=account_name,
            blob_endpoint=f"https://{account_name}.blob.{StorageDefaults.ENDPOINT_SUFFIX}",
            queue_endpoint=f"https://{account_name}.queue.{StorageDefaults.ENDPOINT_SUFFIX}",
            credential=credential_factory(),
        )

    settings = _split_connection_string(text)

    if settings.get("usedevelopmentstorage", "").lower() == "true":
        return _development_account()

    protocol = settings.get("defaultendpointsprotocol", "https")
    suffix = settings.get("endpointsuffix", StorageDefaults.ENDPOINT_SUFFIX)
    blob_endpoint = settings.get("blobendpoint")
    queue_endpoint = settings.get("queueendpoint")
    account_name = settings.get("accountname")

    if not account_name:
        explicit = blob_endpoint or queue_endpoint
        if not explicit:
            raise ConfigurationError("Connection string has neither AccountName nor an explicit endpoint")
        account_name = _account_from_endpoint(explicit, suffix.lower())

    blob_endpoint = blob_endpoint or f"{protocol}://{account_name}.blob.{suffix}"
    queue_endpoint = queue_endpoint or f"{protocol}://{account_name}.queue.{suffix}"

    if "accountkey" in settings:
        credential = {"account_name": account_name, "account_key": settings["accountkey"]}
    elif "sharedaccesssignature" in settings:
        credential = settings["sharedaccesssignature"]
    else:
        credential = None

    return AccountHandle(
        account_name=account_name,
        blob_endpoint=blob_endpoint.rstrip("/"),
        queue_endpoint=queue_endpoint.rstrip("/"),
        credential=credential,
        connection_string=text,
    )


class StorageHandleProvider:
    """
    Scope resolver: connection strings to account, container and queue handles.

    Triggers without their own connection use default_connection_string
    (AzureWebJobsStorage). Accounts are cached per connection string so
    every trigger sharing a connection shares one AccountHandle.
    """

    def __init__(self, default_connection_string: Optional[str] = None, credential_factory=DefaultAzureCredential):
        self.default_connection_string = default_connection_string
        self._credential_factory = credential_factory
        self._accounts: Dict[str, AccountHandle] = {}

    def get_account(self, connection_string: Optional[str] = None) -> AccountHandle:
        """
        Resolve (and cache) the account for a connection string.

        Raises:
            ConfigurationError: No connection string and no default configured
        """
        text = connection_string or self.default_connection_string
        if not text:
            raise ConfigurationError(
                "Trigger has no storage connection and AzureWebJobsStorage is not set"
            )
        if text not in self._accounts:
            account = parse_account(text, credential_factory=self._credential_factory)
            self._accounts[text] = account
            logger.info(f"Resolved storage account: {account.account_name}")
        return self._accounts[text]

    def get_container(self, account: AccountHandle, name: str) -> ContainerHandle:
        return ContainerHandle(account=account, name=name)

    def get_queue(self, account: AccountHandle, name: str) -> QueueHandle:
        return QueueHandle(account=account, name=name.lower())
