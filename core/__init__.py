"""
Core Trigger Components.

Contains the pure building blocks of the listener, separated from the
Azure-facing infrastructure and the threaded listeners.

Structure:
    models/: Pure data structures (no business logic)
    logic/: Path matching, freshness decision, interval calculation
"""

from . import models
from . import logic

__all__ = [
    'models',
    'logic'
]
