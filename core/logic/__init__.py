"""
Core Business Logic Package.

Contains business logic that operates on pure data models.
Separated from models to maintain clean architecture.

Exports:
    Path matching: match, apply_names
    Freshness: should_invoke_trigger
    Intervals: speedup_step, next_interval
"""

# Path matching
from .blob_path import (
    RouteValues,
    match,
    apply_names
)

# Freshness
from .freshness import should_invoke_trigger

# Intervals
from .intervals import (
    speedup_step,
    next_interval
)

__all__ = [
    # Path matching
    'RouteValues',
    'match',
    'apply_names',

    # Freshness
    'should_invoke_trigger',

    # Intervals
    'speedup_step',
    'next_interval'
]
