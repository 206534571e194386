# ============================================================================
# CLAUDE CONTEXT - CONFIG PACKAGE INIT
# ============================================================================
# STATUS: Config - package exports and singleton
# PURPOSE: Configuration package exports for the trigger listener
# EXPORTS: All config classes, get_config singleton, reset_config, debug_config helper
# INTERFACES: Pydantic BaseModel
# PYDANTIC_MODELS: AppConfig, StorageConfig, QueuePollConfig, ServiceBusConfig
# DEPENDENCIES: domain config modules
# SCOPE: Global configuration package
# VALIDATION: Pydantic v2 validation
# PATTERNS: Singleton, composition, facade
# ENTRY_POINTS: from config import get_config
# ============================================================================

"""
Configuration Package - Domain-Specific Configuration Modules

Structure:
    config/
    ├── __init__.py              # This file - exports and singleton
    ├── app_config.py            # Main config (composes domain configs)
    ├── storage_config.py        # Default connection, dev account, analytics logs
    ├── queue_config.py          # Queue timers, Service Bus extension
    └── defaults.py              # Default values

Usage:
    from config import get_config
    config = get_config()
    interval = config.queues.normal_interval_seconds

    from config import debug_config
    info = debug_config()  # Secrets masked
"""

from typing import Optional

from .storage_config import StorageConfig
from .queue_config import QueuePollConfig, ServiceBusConfig
from .app_config import AppConfig


# ============================================================================
# SINGLETON PATTERN
# ============================================================================

_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get global configuration singleton.

    Returns:
        AppConfig instance loaded from environment
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = AppConfig.from_environment()
    return _config_instance


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None


def debug_config() -> dict:
    """
    Get sanitized configuration for debugging (masks sensitive values).

    Returns:
        Dictionary with configuration values, connection strings masked
    """
    try:
        config = get_config()
        return {
            'storage': config.storage.debug_dict(),
            'queues': {
                'normal_interval_seconds': config.queues.normal_interval_seconds,
                'minimum_interval_seconds': config.queues.minimum_interval_seconds,
                'visibility_timeout_seconds': config.queues.visibility_timeout_seconds,
            },
            'service_bus': {
                'connection': '***MASKED***' if config.service_bus.connection_string else None,
                'namespace': config.service_bus.namespace,
                'max_wait_time_seconds': config.service_bus.max_wait_time_seconds,
            },
            'debug_mode': config.debug_mode,
            'environment': config.environment,
            'log_level': config.log_level,
        }
    except Exception as e:
        return {'error': f'Configuration validation failed: {e}'}


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    'AppConfig',
    'get_config',
    'reset_config',
    'debug_config',
    'StorageConfig',
    'QueuePollConfig',
    'ServiceBusConfig',
]
