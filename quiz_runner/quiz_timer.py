"""
Countdown timer for quiz sessions.
Ticks once per second on the running asyncio loop and forces completion
when the countdown reaches zero.
"""
import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, Optional

# Set up logger for timer operations
logger = logging.getLogger(__name__)


def format_remaining(seconds: int) -> str:
    """Format a number of seconds as zero-padded MM:SS."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


class TimerState(Enum):
    """Lifecycle states of a countdown timer."""
    IDLE = "idle"
    ARMED = "armed"
    EXPIRED = "expired"


class TimerLifecycleLogger:
    """Structured logging for timer lifecycle events."""

    @staticmethod
    def log_timer_armed(timer_name: str, duration: int, scheduled: bool) -> None:
        """Log a countdown being armed."""
        logger.info(
            f"Timer lifecycle: ARMED - Timer {timer_name}, Duration {duration}s, Scheduled {scheduled}",
            extra={
                'event_type': 'timer_armed',
                'timer_name': timer_name,
                'duration': duration,
                'scheduled': scheduled,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_update(timer_name: str, remaining_time: int, total_duration: int) -> None:
        """Log timer update events (throttled to avoid spam)."""
        # Log only at specific intervals to avoid log spam
        if remaining_time % 10 == 0 or remaining_time <= 5:
            progress_percent = ((total_duration - remaining_time) / total_duration) * 100
            logger.debug(
                f"Timer lifecycle: UPDATE - Timer {timer_name}, Remaining {remaining_time}s ({progress_percent:.1f}% complete)",
                extra={
                    'event_type': 'timer_update',
                    'timer_name': timer_name,
                    'remaining_time': remaining_time,
                    'total_duration': total_duration,
                    'progress_percent': progress_percent,
                    'timestamp': time.time()
                }
            )

    @staticmethod
    def log_timer_completion(timer_name: str, completion_type: str, total_duration: int) -> None:
        """Log timer completion (natural expiry or cancellation)."""
        logger.info(
            f"Timer lifecycle: COMPLETED - Timer {timer_name}, Type {completion_type}, Duration {total_duration}s",
            extra={
                'event_type': 'timer_completed',
                'timer_name': timer_name,
                'completion_type': completion_type,
                'total_duration': total_duration,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_state_transition(timer_name: str, from_state: str, to_state: str, reason: str = None) -> None:
        """Log timer state transitions."""
        logger.info(
            f"Timer lifecycle: STATE_TRANSITION - Timer {timer_name}, {from_state} -> {to_state}" +
            (f" ({reason})" if reason else ""),
            extra={
                'event_type': 'timer_state_transition',
                'timer_name': timer_name,
                'from_state': from_state,
                'to_state': to_state,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_error(timer_name: str, error_type: str, error_message: str, operation: str) -> None:
        """Log timer-related errors with context."""
        logger.error(
            f"Timer lifecycle: ERROR - Timer {timer_name}, Operation {operation}, Type {error_type}: {error_message}",
            extra={
                'event_type': 'timer_error',
                'timer_name': timer_name,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )


class QuizTimer:
    """
    Countdown timer for a quiz session.

    The timer is armed with a duration and callbacks. While armed it removes
    one second per tick; reaching zero moves it to EXPIRED and calls the
    expiry callback exactly once. When an event loop is running, arming
    schedules a background task that ticks every tick_interval seconds.
    Without a running loop the owner calls tick() itself.
    """

    def __init__(self, name: str = "session", tick_interval: float = 1.0):
        """
        Initialize the timer.

        Args:
            name: Label used in log records
            tick_interval: Seconds between scheduled ticks
        """
        self._name = name
        self._tick_interval = tick_interval
        self._state = TimerState.IDLE
        self._remaining_time = 0
        self._total_duration = 0
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._on_tick: Optional[Callable[[int], Any]] = None
        self._on_expire: Optional[Callable[[], Any]] = None

    def arm(
        self,
        duration: int,
        on_tick: Optional[Callable[[int], Any]] = None,
        on_expire: Optional[Callable[[], Any]] = None
    ) -> None:
        """
        Start a new countdown, replacing any countdown in flight.

        Args:
            duration: Countdown length in seconds
            on_tick: Called after each tick with the remaining seconds
            on_expire: Called once when the countdown reaches zero

        Raises:
            ValueError: If duration is not a positive integer
        """
        if not isinstance(duration, int) or isinstance(duration, bool) or duration <= 0:
            raise ValueError(f"Timer duration must be a positive integer, got {duration!r}")

        self._cancel_task()
        previous_state = self._state

        self._generation += 1
        self._remaining_time = duration
        self._total_duration = duration
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._state = TimerState.ARMED

        TimerLifecycleLogger.log_timer_state_transition(
            self._name,
            previous_state.value,
            TimerState.ARMED.value,
            "countdown armed"
        )

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            self._task = loop.create_task(self._run(self._generation))
        TimerLifecycleLogger.log_timer_armed(self._name, duration, loop is not None)

    def tick(self) -> bool:
        """
        Remove one second from an armed countdown.

        Returns:
            True if a second was consumed, False if the timer is not armed
        """
        if self._state is not TimerState.ARMED:
            return False

        self._remaining_time -= 1
        TimerLifecycleLogger.log_timer_update(self._name, self._remaining_time, self._total_duration)

        if self._on_tick is not None:
            self._on_tick(self._remaining_time)

        if self._remaining_time <= 0 and self._state is TimerState.ARMED:
            self._remaining_time = 0
            self._state = TimerState.EXPIRED
            TimerLifecycleLogger.log_timer_completion(self._name, "natural_expiry", self._total_duration)
            if self._on_expire is not None:
                self._on_expire()
        return True

    def disarm(self, reason: str = "disarm requested") -> bool:
        """
        Stop an armed countdown.

        An expired timer stays expired until it is armed or reset again.

        Returns:
            True if an armed countdown was stopped, False otherwise
        """
        self._cancel_task()
        if self._state is not TimerState.ARMED:
            return False

        self._state = TimerState.IDLE
        TimerLifecycleLogger.log_timer_state_transition(
            self._name,
            TimerState.ARMED.value,
            TimerState.IDLE.value,
            reason
        )
        TimerLifecycleLogger.log_timer_completion(self._name, "cancelled", self._total_duration)
        return True

    def reset(self) -> None:
        """Return the timer to IDLE with nothing remaining."""
        self.disarm("reset")
        if self._state is TimerState.EXPIRED:
            TimerLifecycleLogger.log_timer_state_transition(
                self._name,
                TimerState.EXPIRED.value,
                TimerState.IDLE.value,
                "reset"
            )
        self._state = TimerState.IDLE
        self._remaining_time = 0
        self._on_tick = None
        self._on_expire = None

    async def _run(self, generation: int) -> None:
        try:
            while self._generation == generation and self._state is TimerState.ARMED:
                await asyncio.sleep(self._tick_interval)
                if self._generation != generation:
                    break
                self.tick()
        except asyncio.CancelledError:
            logger.debug(f"Timer task cancelled for timer {self._name}")
            raise
        except Exception as e:
            TimerLifecycleLogger.log_timer_error(
                self._name,
                "countdown_execution_error",
                str(e),
                "run"
            )
            raise

    def _cancel_task(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # The countdown task may end its own session through on_expire
        if task is not current:
            task.cancel()
            logger.debug(f"Cancelled countdown task for timer {self._name}")

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_armed(self) -> bool:
        return self._state is TimerState.ARMED

    @property
    def is_expired(self) -> bool:
        return self._state is TimerState.EXPIRED

    @property
    def remaining_time(self) -> int:
        """Get remaining time in seconds."""
        return self._remaining_time

    @property
    def total_duration(self) -> int:
        return self._total_duration

    @property
    def formatted_remaining(self) -> str:
        return format_remaining(self._remaining_time)

    @property
    def has_scheduled_task(self) -> bool:
        return self._task is not None and not self._task.done()
