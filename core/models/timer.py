"""
Adaptive timer state.

One TimerState per queue trigger. Only the owning timer thread mutates
current_interval_seconds; get_status() readers may see a stale value.
"""

from dataclasses import dataclass, field


@dataclass
class TimerState:
    normal_interval_seconds: float
    minimum_interval_seconds: float
    current_interval_seconds: float = field(default=0.0)

    def __post_init__(self):
        if self.minimum_interval_seconds <= 0:
            raise ValueError("minimum_interval_seconds must be positive")
        if self.minimum_interval_seconds > self.normal_interval_seconds:
            raise ValueError(
                f"minimum_interval_seconds ({self.minimum_interval_seconds}) must not exceed "
                f"normal_interval_seconds ({self.normal_interval_seconds})"
            )
        if not self.current_interval_seconds:
            self.current_interval_seconds = self.normal_interval_seconds
