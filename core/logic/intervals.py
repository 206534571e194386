"""
Adaptive Interval Calculations.

Linear speed-up, instant reset: each tick that found work shortens the
interval by a fixed step down to the minimum; the first empty tick puts
it straight back to normal.

Exports:
    speedup_step: Step size for a normal/minimum pair
    next_interval: Interval to wait after a tick
"""

from ..models.timer import TimerState


def speedup_step(normal_seconds: float, minimum_seconds: float, divisor: int = 4) -> float:
    """
    Step size for the linear speed-up.

    Args:
        normal_seconds: Idle interval
        minimum_seconds: Floor
        divisor: Number of busy ticks to go from normal to minimum

    Returns:
        (normal - minimum) / divisor, 0.0 when the two are equal
    """
    if divisor < 1:
        raise ValueError(f"divisor must be >= 1, got {divisor}")
    return max(0.0, normal_seconds - minimum_seconds) / divisor


def next_interval(state: TimerState, found_work: bool, step: float) -> float:
    """
    Interval to wait before the next tick.

    Never below the minimum; only returns to normal after an empty tick.
    """
    if not found_work:
        return state.normal_interval_seconds
    return max(state.minimum_interval_seconds, state.current_interval_seconds - step)
