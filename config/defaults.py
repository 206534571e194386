"""
Configuration Defaults - Single source of truth for all default values.

Organization:
    - StorageDefaults: development account identity, analytics log layout
    - QueuePollDefaults: adaptive timer bounds, visibility timeout
    - ServiceBusDefaults: receiver wait time
    - AppDefaults: environment and log level

Usage:
    from config.defaults import QueuePollDefaults

    # In Pydantic Field definitions:
    normal_interval_seconds: float = Field(default=QueuePollDefaults.NORMAL_INTERVAL_SECONDS, ...)
"""


# =============================================================================
# STORAGE DEFAULTS
# =============================================================================

class StorageDefaults:
    """
    Storage account defaults.

    The development emulator always uses the well-known account name
    devstoreaccount1 and never writes analytics logs, which is why the
    listener falls back to full container scans when it sees it.
    """

    DEV_ACCOUNT_NAME = "devstoreaccount1"

    # Well-known emulator key (public, documented by Azurite)
    DEV_ACCOUNT_KEY = (
        "Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/"
        "K1SZFPTOtr/KBHBeksoGMGw=="
    )
    DEV_BLOB_ENDPOINT = "http://127.0.0.1:10000/devstoreaccount1"
    DEV_QUEUE_ENDPOINT = "http://127.0.0.1:10001/devstoreaccount1"

    # Storage Analytics logging
    LOGS_CONTAINER = "$logs"
    BLOB_LOG_PREFIX = "blob/"

    ENDPOINT_SUFFIX = "core.windows.net"


# =============================================================================
# QUEUE POLL DEFAULTS
# =============================================================================

class QueuePollDefaults:
    """
    Adaptive queue timer defaults.

    Normal and minimum are equal by default, which pins the interval at a
    flat 2 seconds; raise NORMAL to let bursts speed the timer up.
    """

    NORMAL_INTERVAL_SECONDS = 2.0
    MINIMUM_INTERVAL_SECONDS = 2.0
    SPEEDUP_DIVISOR = 4  # step = (normal - minimum) / SPEEDUP_DIVISOR
    VISIBILITY_TIMEOUT_SECONDS = 30
    STOP_JOIN_TIMEOUT_SECONDS = 10.0


# =============================================================================
# SERVICE BUS DEFAULTS
# =============================================================================

class ServiceBusDefaults:
    """Service Bus extension defaults."""

    MAX_WAIT_TIME_SECONDS = 5
    MAX_MESSAGE_COUNT = 1
    POLL_INTERVAL_ON_ERROR_SECONDS = 5
    STOP_JOIN_TIMEOUT_SECONDS = 10


# =============================================================================
# APPLICATION DEFAULTS
# =============================================================================

class AppDefaults:
    """Application-level defaults."""

    DEBUG_MODE = False
    ENVIRONMENT = "dev"
    LOG_LEVEL = "INFO"
