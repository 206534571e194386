# ============================================================================
# CLAUDE CONTEXT - CORE MODELS - STORAGE HANDLES
# ============================================================================
# STATUS: Core models - resolved account, container and queue identities
# PURPOSE: Registry keys with explicit equality plus handles carrying the owning account
# EXPORTS: AccountHandle, ContainerKey, QueueKey, ContainerHandle, QueueHandle
# INTERFACES: Pydantic BaseModel (keys), dataclasses (handles)
# PYDANTIC_MODELS: ContainerKey, QueueKey
# DEPENDENCIES: pydantic, dataclasses
# SCOPE: Produced by infrastructure.accounts, consumed by registry and detectors
# VALIDATION: Account names compared case-insensitively, container/queue names exactly
# PATTERNS: Value object, identity by key
# ENTRY_POINTS: StorageHandleProvider.get_container(account, name)
# ============================================================================

"""
Storage handles.

Two handles for the same container obtained from different connection
strings (one with a SAS, one with a key) must land in the same registry
slot, so identity is the key (account name + container name) and never
the credential or endpoint.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ContainerKey(BaseModel):
    """(account, container) identity used as a registry key."""

    model_config = ConfigDict(frozen=True)

    account_name: str
    container_name: str

    @field_validator("account_name")
    @classmethod
    def _lower_account(cls, value: str) -> str:
        return value.lower()

    def __str__(self) -> str:
        return f"{self.account_name}/{self.container_name}"


class QueueKey(BaseModel):
    """(account, queue) identity used as a registry key."""

    model_config = ConfigDict(frozen=True)

    account_name: str
    queue_name: str

    @field_validator("account_name", "queue_name")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.lower()

    def __str__(self) -> str:
        return f"{self.account_name}/{self.queue_name}"


@dataclass(frozen=True, eq=False)
class AccountHandle:
    """
    A storage account resolved from a connection string.

    credential is whatever the azure-storage clients accept: an account
    key dict, a SAS token string, a TokenCredential, or None for public
    access.
    """

    account_name: str
    blob_endpoint: str
    queue_endpoint: str
    credential: Any = field(default=None, repr=False)
    connection_string: Optional[str] = field(default=None, repr=False)

    @property
    def key(self) -> str:
        return self.account_name.lower()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccountHandle):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


@dataclass(frozen=True, eq=False)
class ContainerHandle:
    account: AccountHandle
    name: str

    @property
    def key(self) -> ContainerKey:
        return ContainerKey(account_name=self.account.account_name, container_name=self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContainerHandle):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return str(self.key)


@dataclass(frozen=True, eq=False)
class QueueHandle:
    account: AccountHandle
    name: str

    @property
    def key(self) -> QueueKey:
        return QueueKey(account_name=self.account.account_name, queue_name=self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueueHandle):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return str(self.key)
