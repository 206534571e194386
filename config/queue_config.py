"""
Queue Polling Configuration.

Provides configuration for:
    - Adaptive queue timer bounds (normal / minimum interval)
    - Visibility timeout applied when a message is dequeued
    - Service Bus extension connection and receive settings

Storage queue triggers are polled by one timer per trigger. Service Bus
triggers are handled by the Service Bus extension, which long-polls.

Exports:
    QueuePollConfig: Storage queue timer settings
    ServiceBusConfig: Service Bus extension settings
"""

import os
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from .defaults import QueuePollDefaults, ServiceBusDefaults


class QueuePollConfig(BaseModel):
    """
    Storage queue polling configuration.

    minimum_interval_seconds is the floor the timer speeds up to while
    messages keep arriving; normal_interval_seconds is where it resets to
    after an empty tick.
    """

    normal_interval_seconds: float = Field(
        default=QueuePollDefaults.NORMAL_INTERVAL_SECONDS,
        gt=0,
        description="Interval between ticks when the queue is idle"
    )

    minimum_interval_seconds: float = Field(
        default=QueuePollDefaults.MINIMUM_INTERVAL_SECONDS,
        gt=0,
        description="Floor for the interval while messages keep arriving"
    )

    speedup_divisor: int = Field(
        default=QueuePollDefaults.SPEEDUP_DIVISOR,
        ge=1,
        le=100,
        description="Linear speed-up step is (normal - minimum) / speedup_divisor"
    )

    visibility_timeout_seconds: int = Field(
        default=QueuePollDefaults.VISIBILITY_TIMEOUT_SECONDS,
        ge=1,
        le=7 * 24 * 3600,
        description="How long a dequeued message stays hidden before redelivery"
    )

    stop_join_timeout_seconds: float = Field(
        default=QueuePollDefaults.STOP_JOIN_TIMEOUT_SECONDS,
        gt=0,
        description="How long stop_polling waits for an in-flight tick per timer"
    )

    @model_validator(mode="after")
    def _minimum_not_above_normal(self) -> "QueuePollConfig":
        if self.minimum_interval_seconds > self.normal_interval_seconds:
            raise ValueError(
                f"minimum_interval_seconds ({self.minimum_interval_seconds}) must not exceed "
                f"normal_interval_seconds ({self.normal_interval_seconds})"
            )
        return self

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        return cls(
            normal_interval_seconds=float(os.environ.get(
                "QUEUE_POLL_NORMAL_INTERVAL_SECONDS", str(QueuePollDefaults.NORMAL_INTERVAL_SECONDS))),
            minimum_interval_seconds=float(os.environ.get(
                "QUEUE_POLL_MINIMUM_INTERVAL_SECONDS", str(QueuePollDefaults.MINIMUM_INTERVAL_SECONDS))),
            speedup_divisor=int(os.environ.get(
                "QUEUE_POLL_SPEEDUP_DIVISOR", str(QueuePollDefaults.SPEEDUP_DIVISOR))),
            visibility_timeout_seconds=int(os.environ.get(
                "QUEUE_VISIBILITY_TIMEOUT_SECONDS", str(QueuePollDefaults.VISIBILITY_TIMEOUT_SECONDS))),
            stop_join_timeout_seconds=float(os.environ.get(
                "QUEUE_STOP_JOIN_TIMEOUT_SECONDS", str(QueuePollDefaults.STOP_JOIN_TIMEOUT_SECONDS))),
        )


class ServiceBusConfig(BaseModel):
    """
    Service Bus extension configuration.

    Triggers may carry their own connection; these values are the fallback.
    """

    connection_string: Optional[str] = Field(
        default=None,
        repr=False,
        description="Service Bus connection string (ServiceBusConnection)"
    )

    namespace: Optional[str] = Field(
        default=None,
        description="Fully qualified namespace for managed identity auth"
    )

    max_wait_time_seconds: int = Field(
        default=ServiceBusDefaults.MAX_WAIT_TIME_SECONDS,
        ge=1,
        le=300,
        description="Long-poll wait per receive call"
    )

    poll_interval_on_error_seconds: int = Field(
        default=ServiceBusDefaults.POLL_INTERVAL_ON_ERROR_SECONDS,
        ge=0,
        le=300,
        description="Pause after a Service Bus connectivity error"
    )

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        return cls(
            connection_string=os.environ.get("ServiceBusConnection"),
            namespace=os.environ.get("SERVICE_BUS_NAMESPACE") or os.environ.get("ServiceBusConnection__fullyQualifiedNamespace"),
            max_wait_time_seconds=int(os.environ.get(
                "SERVICE_BUS_MAX_WAIT_TIME_SECONDS", str(ServiceBusDefaults.MAX_WAIT_TIME_SECONDS))),
            poll_interval_on_error_seconds=int(os.environ.get(
                "SERVICE_BUS_POLL_INTERVAL_ON_ERROR_SECONDS", str(ServiceBusDefaults.POLL_INTERVAL_ON_ERROR_SECONDS))),
        )
