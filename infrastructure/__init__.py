"""
Infrastructure Package - Lazy Loading Implementation.

Provides the Azure-facing store implementations with lazy loading so that
importing the package never reads environment variables, creates a
credential, or opens a connection.

All imports are deferred until actually needed to avoid:
    - Premature environment variable access
    - DefaultAzureCredential authenticating during import
    - Import order dependencies with config and util_logger

How it works:
    - __getattr__ intercepts access to the classes below
    - The actual import happens ONLY when the class is first used
    - Typically when RepositoryFactory builds the stores for a Listener
"""

from typing import TYPE_CHECKING

# For type checking only - doesn't actually import at runtime
if TYPE_CHECKING:
    from .factory import RepositoryFactory as _RepositoryFactory
    from .accounts import StorageHandleProvider as _StorageHandleProvider
    from .accounts import parse_account as _parse_account
    from .blob import IBlobStore as _IBlobStore
    from .blob import BlobStore as _BlobStore
    from .queue import IQueueStore as _IQueueStore
    from .queue import QueueStore as _QueueStore
    from .service_bus import ServiceBusClientProvider as _ServiceBusClientProvider


def __getattr__(name: str):
    """
    Lazy import mechanism - only imports when actually accessed.
    This prevents module-level code execution until needed.
    """
    if name == "RepositoryFactory":
        from .factory import RepositoryFactory
        return RepositoryFactory

    elif name == "StorageHandleProvider":
        from .accounts import StorageHandleProvider
        return StorageHandleProvider
    elif name == "parse_account":
        from .accounts import parse_account
        return parse_account

    elif name == "IBlobStore":
        from .blob import IBlobStore
        return IBlobStore
    elif name == "BlobStore":
        from .blob import BlobStore
        return BlobStore

    elif name == "IQueueStore":
        from .queue import IQueueStore
        return IQueueStore
    elif name == "QueueStore":
        from .queue import QueueStore
        return QueueStore

    elif name == "ServiceBusClientProvider":
        from .service_bus import ServiceBusClientProvider
        return ServiceBusClientProvider

    raise AttributeError(f"module 'infrastructure' has no attribute '{name}'")


__all__ = [
    "RepositoryFactory",
    "StorageHandleProvider",
    "parse_account",
    "IBlobStore",
    "BlobStore",
    "IQueueStore",
    "QueueStore",
    "ServiceBusClientProvider",
]
