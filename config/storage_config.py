# ============================================================================
# CLAUDE CONTEXT - STORAGE CONFIGURATION
# ============================================================================
# STATUS: Config - storage account settings for the trigger listener
# PURPOSE: Default storage connection, development account identity, analytics log location
# EXPORTS: StorageConfig
# INTERFACES: Pydantic BaseModel
# PYDANTIC_MODELS: StorageConfig
# DEPENDENCIES: pydantic, os
# SOURCE: Environment variables (AzureWebJobsStorage, STORAGE_DEV_ACCOUNT_NAME, STORAGE_LOGS_CONTAINER)
# SCOPE: Storage-specific configuration
# VALIDATION: Pydantic v2 validation
# ENTRY_POINTS: from config import StorageConfig
# ============================================================================

"""
Azure Storage Configuration.

Provides configuration for:
- The default storage connection used when a trigger carries none
- The development account name that selects full-scan blob detection
- The analytics log container read by the log-based detector
"""

import os
from typing import Optional
from pydantic import BaseModel, Field

from .defaults import StorageDefaults


class StorageConfig(BaseModel):
    """
    Storage configuration for the trigger listener.

    Triggers normally carry their own connection string; connection_string
    here is the fallback for triggers registered without one.
    """

    connection_string: Optional[str] = Field(
        default=None,
        repr=False,
        description="Default storage connection string (AzureWebJobsStorage)"
    )

    dev_account_name: str = Field(
        default=StorageDefaults.DEV_ACCOUNT_NAME,
        description="Account name of the local development store (no analytics logs, full scan)"
    )

    logs_container: str = Field(
        default=StorageDefaults.LOGS_CONTAINER,
        description="Container holding Storage Analytics logs"
    )

    blob_log_prefix: str = Field(
        default=StorageDefaults.BLOB_LOG_PREFIX,
        description="Prefix of blob-service log files inside the logs container"
    )

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        return cls(
            connection_string=os.environ.get("AzureWebJobsStorage"),
            dev_account_name=os.environ.get("STORAGE_DEV_ACCOUNT_NAME", StorageDefaults.DEV_ACCOUNT_NAME),
            logs_container=os.environ.get("STORAGE_LOGS_CONTAINER", StorageDefaults.LOGS_CONTAINER),
            blob_log_prefix=os.environ.get("STORAGE_BLOB_LOG_PREFIX", StorageDefaults.BLOB_LOG_PREFIX),
        )

    def debug_dict(self) -> dict:
        """Return debug-friendly configuration with secrets masked."""
        return {
            "connection_string": '***MASKED***' if self.connection_string else None,
            "dev_account_name": self.dev_account_name,
            "logs_container": self.logs_container,
            "blob_log_prefix": self.blob_log_prefix,
        }
