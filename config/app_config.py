"""
Main Application Configuration.

Composes domain-specific configuration modules:
    - StorageConfig (default connection, development account, analytics logs)
    - QueuePollConfig (storage queue timers)
    - ServiceBusConfig (Service Bus extension)

Exports:
    AppConfig: Main configuration class

Pattern:
    Composition over inheritance - domain configs are composed, not inherited.
"""

import os
from pydantic import BaseModel, Field

from .storage_config import StorageConfig
from .queue_config import QueuePollConfig, ServiceBusConfig
from .defaults import AppDefaults


# ============================================================================
# APPLICATION CONFIGURATION
# ============================================================================

class AppConfig(BaseModel):
    """
    Application configuration - composition of domain configs.
    """

    # ========================================================================
    # Core Application Settings
    # ========================================================================

    debug_mode: bool = Field(
        default=AppDefaults.DEBUG_MODE,
        description="Enable debug mode for verbose diagnostics (per-blob decision logging). "
                    "Set DEBUG_MODE=true in environment to enable.",
        examples=[True, False]
    )

    environment: str = Field(
        default=AppDefaults.ENVIRONMENT,
        description="Environment name (dev, qa, prod)",
        examples=["dev", "qa", "prod"]
    )

    # ========================================================================
    # Logging Configuration
    # ========================================================================

    log_level: str = Field(
        default=AppDefaults.LOG_LEVEL,
        description="Logging level for application diagnostics",
        examples=["DEBUG", "INFO", "WARNING", "ERROR"]
    )

    # ========================================================================
    # Domain Configurations
    # ========================================================================

    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Storage account configuration"
    )

    queues: QueuePollConfig = Field(
        default_factory=QueuePollConfig,
        description="Storage queue polling configuration"
    )

    service_bus: ServiceBusConfig = Field(
        default_factory=ServiceBusConfig,
        description="Service Bus extension configuration"
    )

    @classmethod
    def from_environment(cls):
        """Load all configs from environment."""
        return cls(
            debug_mode=os.environ.get("DEBUG_MODE", str(AppDefaults.DEBUG_MODE).lower()).lower() == "true",
            environment=os.environ.get("ENVIRONMENT", AppDefaults.ENVIRONMENT),
            log_level=os.environ.get("LOG_LEVEL", AppDefaults.LOG_LEVEL),

            storage=StorageConfig.from_environment(),
            queues=QueuePollConfig.from_environment(),
            service_bus=ServiceBusConfig.from_environment(),
        )
