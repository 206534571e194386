# ============================================================================
# CLAUDE CONTEXT - QUEUE POLL SCHEDULER
# ============================================================================
# STATUS: Listeners - one adaptive timer thread per storage queue trigger
# PURPOSE: Poll storage queues faster while messages keep arriving, back off to normal when idle
# EXPORTS: LinearSpeedupStrategy, PollQueueCommand, IntervalSeparationTimer
# INTERFACES: ITriggerInvoke (on_new_queue_item)
# PYDANTIC_MODELS: None
# DEPENDENCIES: threading, core.logic.intervals, infrastructure.queue (IQueueStore)
# SCOPE: Started by Listener.start_polling, stopped by Listener.stop_polling
# VALIDATION: Interval bounds enforced by TimerState
# PATTERNS: Command, background worker thread with stop event
# ENTRY_POINTS: IntervalSeparationTimer(PollQueueCommand(...), LinearSpeedupStrategy(...)).start()
# ============================================================================

"""
Queue Poll Scheduler.

Each queue trigger gets its own IntervalSeparationTimer running a
PollQueueCommand. The interval is measured from the END of one tick to
the START of the next, so a slow invocation never causes overlapping
ticks. Timers share nothing mutable; each owns its TimerState.

Stop semantics:
    stop() sets the timer's event and joins the thread. A tick that is
    already running finishes (including its invocation and delete); no
    new tick starts after the event is set.
"""

import threading
from datetime import datetime, timezone
from typing import Optional

from config.defaults import QueuePollDefaults
from core.logic.intervals import next_interval, speedup_step
from core.models import PollContext, QueueHandle, QueueTrigger, TimerState
from exceptions import TransientStoreError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SCHEDULER, "QueuePoller")


class LinearSpeedupStrategy:
    """
    Interval strategy: shrink by a fixed step per busy tick, reset on an empty one.

    Usage:
        strategy = LinearSpeedupStrategy(normal_seconds=10, minimum_seconds=2)
        strategy.record(found_work=True)   # 8.0
        strategy.record(found_work=False)  # 10.0
    """

    def __init__(self, normal_seconds: float = QueuePollDefaults.NORMAL_INTERVAL_SECONDS,
                 minimum_seconds: float = QueuePollDefaults.MINIMUM_INTERVAL_SECONDS,
                 divisor: int = QueuePollDefaults.SPEEDUP_DIVISOR):
        self.state = TimerState(
            normal_interval_seconds=normal_seconds,
            minimum_interval_seconds=minimum_seconds,
        )
        self.step = speedup_step(normal_seconds, minimum_seconds, divisor)

    @property
    def current_interval(self) -> float:
        return self.state.current_interval_seconds

    def record(self, found_work: bool) -> float:
        """Update and return the interval after a tick."""
        self.state.current_interval_seconds = next_interval(self.state, found_work, self.step)
        return self.state.current_interval_seconds

    def reset(self) -> None:
        self.state.current_interval_seconds = self.state.normal_interval_seconds


class PollQueueCommand:
    """
    One tick of a queue trigger: dequeue at most one message and invoke.

    The message is deleted only after the invoker returns. If the
    invoker raises, the message stays invisible until its visibility
    timeout expires and is then redelivered.
    """

    def __init__(self, queue: QueueHandle, trigger: QueueTrigger, queue_store, invoker,
                 context: Optional[PollContext] = None):
        self.queue = queue
        self.trigger = trigger
        self.queue_store = queue_store
        self.invoker = invoker
        self.context = context or PollContext()
        self.messages_processed = 0
        self.messages_failed = 0
        self.last_error: Optional[str] = None
        self._logger = LoggerFactory.create_with_context(
            ComponentType.SCHEDULER,
            f"PollQueueCommand.{trigger.function_name}",
            function_name=trigger.function_name,
            queue_name=queue.name,
        )

    def try_execute(self) -> bool:
        """
        Run one tick.

        Returns:
            True if a message was found (whether or not its invocation
            succeeded), False if the queue was empty or unreachable
        """
        try:
            item = self.queue_store.dequeue_visible(self.queue)
        except TransientStoreError as e:
            self.last_error = str(e)
            self._logger.warning(f"⚠️ Transient fault polling {self.queue}: {e}")
            return False

        if item is None:
            return False

        try:
            self.invoker.on_new_queue_item(item, self.trigger, self.context)
        except Exception as e:
            self.messages_failed += 1
            self.last_error = f"{type(e).__name__}: {e}"
            self._logger.exception(
                f"❌ {self.trigger.function_name} failed for message {item.message_id} "
                f"(dequeue_count={item.dequeue_count}); leaving it for redelivery"
            )
            return True

        try:
            self.queue_store.delete(self.queue, item)
        except TransientStoreError as e:
            self.last_error = str(e)
            self._logger.warning(f"⚠️ Could not delete {item.message_id}, it will be redelivered: {e}")
        self.messages_processed += 1
        return True


class IntervalSeparationTimer:
    """
    Background thread running a command with an adaptive gap between ticks.

    Follows the worker shape used across the codebase: a daemon thread,
    a threading.Event for shutdown, start()/stop() and get_status().
    """

    def __init__(self, command: PollQueueCommand, strategy: LinearSpeedupStrategy,
                 join_timeout: float = QueuePollDefaults.STOP_JOIN_TIMEOUT_SECONDS):
        self.command = command
        self.strategy = strategy
        self.join_timeout = join_timeout
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._ticks = 0
        self._last_tick_time: Optional[datetime] = None

    @property
    def name(self) -> str:
        return f"queue-timer-{self.command.trigger.function_name}"

    def _run_loop(self, execute_first: bool):
        logger.info(f"[{self.name}] Started on {self.command.queue} "
                    f"(interval={self.strategy.current_interval:.2f}s)")
        try:
            if not execute_first and self._stop_event.wait(self.strategy.current_interval):
                return

            while not self._stop_event.is_set():
                try:
                    found_work = self.command.try_execute()
                except Exception as e:
                    # Nothing above this thread to propagate to; keep the timer alive
                    self.command.last_error = f"{type(e).__name__}: {e}"
                    logger.exception(f"[{self.name}] Unexpected error during tick")
                    found_work = False
                self._ticks += 1
                self._last_tick_time = datetime.now(timezone.utc)
                interval = self.strategy.record(found_work)
                if self._stop_event.wait(interval):
                    break
        finally:
            logger.info(f"[{self.name}] Stopped after {self._ticks} ticks")

    def start(self, execute_first: bool = False) -> None:
        """
        Start the timer thread.

        Args:
            execute_first: Tick immediately instead of waiting one interval
        """
        if self._thread is not None and self._thread.is_alive():
            logger.warning(f"[{self.name}] Already running")
            return

        self._stop_event.clear()
        self.strategy.reset()
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(execute_first,),
            name=self.name,
            daemon=True
        )
        self._thread.start()

    def signal_stop(self) -> None:
        """Ask the thread to stop without waiting for it."""
        self._stop_event.set()

    def stop(self) -> None:
        """Signal the thread and wait for the in-flight tick to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=self.join_timeout)
            if self._thread.is_alive():
                logger.warning(f"[{self.name}] Tick still running after {self.join_timeout}s join timeout")
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def get_status(self) -> dict:
        """Get current timer status."""
        return {
            "function_name": self.command.trigger.function_name,
            "queue": str(self.command.queue),
            "running": self.is_running,
            "current_interval_seconds": self.strategy.current_interval,
            "ticks": self._ticks,
            "messages_processed": self.command.messages_processed,
            "messages_failed": self.command.messages_failed,
            "last_tick_time": self._last_tick_time.isoformat() if self._last_tick_time else None,
            "last_error": self.command.last_error,
        }
