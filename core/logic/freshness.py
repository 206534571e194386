# ============================================================================
# OUTPUT FRESHNESS DECISION
# ============================================================================
# STATUS: Core - Pure decision function
# PURPOSE: Decide whether a blob trigger must run given its input and output timestamps
# ============================================================================
"""
Output Freshness.

A blob trigger runs when its outputs are missing or older than its
input. Equal timestamps count as up to date, so a job that finished
within the same clock tick as the input write is not re-run.

Exports:
    should_invoke_trigger: The decision
"""

from datetime import datetime
from typing import Callable, Dict, Optional

from .blob_path import apply_names
from ..models.blob_path import BlobPath
from ..models.triggers import BlobTrigger


def should_invoke_trigger(
    trigger: BlobTrigger,
    route_values: Dict[str, str],
    input_time: datetime,
    get_modified_time: Callable[[BlobPath], Optional[datetime]],
) -> bool:
    """
    Decide whether the trigger has work to do.

    Args:
        trigger: Blob trigger whose input matched
        route_values: Values captured by the input match
        input_time: Last-modified time of the input blob (UTC)
        get_modified_time: Looks up an output's last-modified time, None if absent

    Returns:
        True if there are no outputs, any output is missing, or any
        output is strictly older than the input

    Raises:
        UnresolvedRouteError: An output references an uncaptured placeholder
    """
    if not trigger.blob_outputs:
        return True

    for output_pattern in trigger.blob_outputs:
        output_path = apply_names(output_pattern, route_values)
        output_time = get_modified_time(output_path)
        if output_time is None:
            return True
        if input_time > output_time:
            return True

    return False
