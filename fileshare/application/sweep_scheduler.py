"""
Sweep Scheduler

Small state machine that drives recurring expired-file sweep passes.
The timer and clock are injected so tests can fire ticks by hand.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional, Protocol

from fileshare.domain.file_storage.cleanup import ExpiredFileSweeper
from fileshare.domain.file_storage.value_objects import SweepStats

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 3600


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]


class RepeatingTimer:
    """
    Calls ``callback`` every ``interval`` seconds on a daemon thread until
    cancelled. The first call happens one interval after ``start``.
    """

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._run, name="fileshare-sweep-timer", daemon=True
        )
        self._thread.start()

    def cancel(self) -> None:
        self._cancelled.set()

    def _run(self) -> None:
        while not self._cancelled.wait(self.interval):
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Sweep timer callback failed: {e}", exc_info=True)


class SweepScheduler:
    """
    Idle/Running state machine around an ExpiredFileSweeper.

    ``start`` moves Idle to Running, runs one pass immediately and arms the
    timer; ``stop`` moves Running to Idle and disarms it. Both are no-ops
    (returning False) when already in the target state. A tick that fires
    while a slow pass is still going is not joined; sweep deletions are
    idempotent.
    """

    def __init__(
        self,
        sweeper: ExpiredFileSweeper,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        timer_factory: TimerFactory = RepeatingTimer,
        on_pass: Optional[Callable[[SweepStats], None]] = None,
    ):
        """
        Initialize the scheduler in the Idle state.

        Args:
            sweeper: Pass implementation
            interval_seconds: Delay between passes while Running
            timer_factory: Builds the recurring timer from (interval, callback)
            on_pass: Called with the stats of every completed pass
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self.sweeper = sweeper
        self.interval_seconds = interval_seconds
        self.timer_factory = timer_factory
        self.on_pass = on_pass
        self._state = SchedulerState.IDLE
        self._timer: Optional[Timer] = None
        self._last_stats: Optional[SweepStats] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    @property
    def last_stats(self) -> Optional[SweepStats]:
        return self._last_stats

    def start(self) -> bool:
        """
        Transition Idle to Running.

        Returns:
            True if the scheduler started, False if it was already running
        """
        with self._lock:
            if self._state is SchedulerState.RUNNING:
                logger.info("Sweep scheduler already running")
                return False
            self._state = SchedulerState.RUNNING
            self._generation += 1
            generation = self._generation

        logger.info(f"Sweep scheduler started, interval {self.interval_seconds}s")
        self.run_pass()

        with self._lock:
            # A stop, or a stop and restart, may have happened during the first pass
            if self._state is SchedulerState.RUNNING and self._generation == generation:
                self._timer = self.timer_factory(self.interval_seconds, self._tick)
                self._timer.start()
        return True

    def stop(self) -> bool:
        """
        Transition Running to Idle and disarm the timer.

        Returns:
            True if the scheduler stopped, False if it was already idle
        """
        with self._lock:
            if self._state is SchedulerState.IDLE:
                return False
            self._state = SchedulerState.IDLE
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        logger.info("Sweep scheduler stopped")
        return True

    def run_pass(self) -> SweepStats:
        """Run one sweep pass now, regardless of state."""
        stats = self.sweeper.run_once()
        self._last_stats = stats

        if self.on_pass is not None:
            try:
                self.on_pass(stats)
            except Exception as e:
                logger.error(f"Sweep pass callback failed: {e}", exc_info=True)
        return stats

    def _tick(self) -> None:
        if self._state is not SchedulerState.RUNNING:
            return
        self.run_pass()
