# ============================================================================
# CLAUDE CONTEXT - EXCEPTIONS
# ============================================================================
# STATUS: Shared - used by listeners, infrastructure and core logic
# PURPOSE: Exception hierarchy separating contract violations from expected storage faults
# EXPORTS: ContractViolationError, BusinessLogicError, TransientStoreError, UnresolvedRouteError,
#          ServiceBusError, ConfigurationError, is_transient_azure_error
# INTERFACES: Standard Python exception hierarchy
# PYDANTIC_MODELS: None
# DEPENDENCIES: azure-core (exception classification only)
# SCOPE: Application-wide exception handling
# PATTERNS: Exception hierarchy for error categorization
# ENTRY_POINTS: Raised at component boundaries; TransientStoreError raised by infrastructure adapters
# ============================================================================

"""
Custom Exception Hierarchy

Distinguishes between:
1. Contract Violations (programming bugs that need fixing)
2. Business Logic Failures (expected runtime issues)

Only TransientStoreError is ever swallowed by the listener. Every other
failure propagates to the host.
"""

from azure.core.exceptions import (
    HttpResponseError,
    ServiceRequestError,
    ServiceResponseError,
)


class ContractViolationError(TypeError):
    """
    Raised when component contracts are violated (programming bugs).

    These should NEVER be caught and handled.

    Examples:
        - Trigger snapshot contains an object that is not a known trigger type
        - Invoker passed in does not implement ITriggerInvoke
    """
    pass


class BusinessLogicError(Exception):
    """
    Base class for expected runtime failures.
    """
    pass


class TransientStoreError(BusinessLogicError):
    """
    Storage connectivity or availability fault.

    Fine-grained error codes are not available for listing and log reads,
    so any connection reset, timeout, throttle or 5xx is mapped here. The
    next poll retries naturally.
    """
    pass


class UnresolvedRouteError(BusinessLogicError):
    """
    An output pattern references a placeholder the input pattern did not capture.

    Scoped to a single trigger evaluation. The listener logs it and moves
    on to the next trigger.
    """

    def __init__(self, placeholder: str, pattern: str):
        self.placeholder = placeholder
        self.pattern = pattern
        super().__init__(
            f"No value for placeholder '{{{placeholder}}}' in pattern '{pattern}'"
        )


class ServiceBusError(BusinessLogicError):
    """
    Service Bus extension failures (receiver open, settle).
    """
    pass


class ConfigurationError(Exception):
    """
    System configuration error.

    Examples:
        - Malformed storage connection string
        - Minimum poll interval greater than normal interval
    """
    pass


# Status codes that mean "try again later" rather than "you asked wrong"
_TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


def is_transient_azure_error(error: BaseException) -> bool:
    """
    Classify an Azure SDK exception as transient.

    Args:
        error: Exception raised by an azure-* client call

    Returns:
        True for connectivity failures and throttling/5xx responses
    """
    if isinstance(error, (ServiceRequestError, ServiceResponseError)):
        return True
    if isinstance(error, HttpResponseError):
        return error.status_code in _TRANSIENT_STATUS_CODES
    return False
