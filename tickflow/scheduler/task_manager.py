"""Cooperative scheduler and the fixed-period loop that drives it."""

import logging
import signal
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from .interfaces import Scheduler
from .stats import SchedulerStats
from .tasks.base import Task, TaskState

logger = logging.getLogger(__name__)


class CooperativeScheduler(Scheduler):
    """Single-threaded scheduler enforcing exclusive requirements.

    Every call to ``run_once()`` is one tick: each active task is stepped
    once, in activation order. Tasks requested while a tick is in progress
    are activated after all active tasks have been stepped, so they are
    observed active from the next tick on.

    Scheduling a task interrupts every active task that shares a
    requirement with it, except the task's own ancestors, which hold the
    requirements on its behalf.

    Example:
        >>> scheduler = CooperativeScheduler()
        >>> scheduler.schedule(TimeBoundedTask(DriveForward(chassis), 3.0))
        >>> while not scheduler.is_idle:
        ...     scheduler.run_once()
    """

    def __init__(self, stats: Optional[SchedulerStats] = None):
        self.stats = stats or SchedulerStats()
        self._active: List[Task] = []
        self._pending: List[Task] = []
        self._in_tick = False

    @property
    def active_tasks(self) -> List[Task]:
        """Active tasks in activation order."""
        return list(self._active)

    @property
    def pending_tasks(self) -> List[Task]:
        """Tasks waiting for activation at the end of the current tick."""
        return list(self._pending)

    @property
    def is_idle(self) -> bool:
        return not self._active and not self._pending

    @property
    def tick_count(self) -> int:
        return self.stats.ticks

    def schedule(self, task: Task) -> bool:
        if _contains(self._active, task) or _contains(self._pending, task):
            logger.debug("Task '%s' already scheduled", task.name)
            return False
        if self._in_tick:
            self._pending.append(task)
            return True
        return self._activate(task)

    def cancel(self, task: Task) -> None:
        if _contains(self._pending, task):
            _remove(self._pending, task)
            logger.debug("Dropped pending task '%s'", task.name)
            return
        if not _contains(self._active, task):
            return
        _remove(self._active, task)
        if task.is_running:
            task.cancel()
            self.stats.cancelled += 1

    def is_active(self, task: Task) -> bool:
        return _contains(self._active, task) and task.is_running

    def cancel_all(self) -> None:
        """Cancel every active task, newest first, and drop pending ones."""
        self._pending.clear()
        for task in reversed(list(self._active)):
            self.cancel(task)

    def run_once(self) -> int:
        """Run one tick.

        Returns:
            Number of tasks that raised and were cancelled during this tick.
        """
        self.stats.record_tick()
        failures = 0
        self._in_tick = True
        try:
            for task in list(self._active):
                if not _contains(self._active, task):
                    continue
                if not task.is_running:
                    _remove(self._active, task)
                    continue
                try:
                    task.step()
                except Exception:
                    failures += 1
                    self.stats.failed += 1
                    logger.exception("Task '%s' raised during tick %s, cancelling", task.name, self.stats.ticks)
                    _remove(self._active, task)
                    self._cancel_failed(task)
                    continue
                self.stats.record_step(task.name)
                if not task.is_running:
                    _remove(self._active, task)
                    if task.state is TaskState.FINISHED:
                        self.stats.finished += 1
                    else:
                        self.stats.cancelled += 1
        finally:
            self._in_tick = False

        pending, self._pending = self._pending, []
        for task in pending:
            self._activate(task)
        return failures

    def _activate(self, task: Task) -> bool:
        ancestors = _ancestors(task)
        for other in list(self._active):
            if _contains(ancestors, other):
                continue
            shared = other.requirements & task.requirements
            if shared:
                logger.info(
                    "Task '%s' interrupted by '%s' (shared: %s)",
                    other.name,
                    task.name,
                    ", ".join(sorted(map(str, shared))),
                )
                self.stats.interrupted += 1
                self.cancel(other)

        self._active.append(task)
        self.stats.scheduled += 1
        try:
            task.start()
        except Exception:
            self.stats.failed += 1
            logger.exception("Task '%s' raised while starting, cancelling", task.name)
            _remove(self._active, task)
            self._cancel_failed(task)
            return False
        logger.debug("Task '%s' activated", task.name)
        return True

    def _cancel_failed(self, task: Task) -> None:
        try:
            task.cancel()
        except Exception:
            logger.exception("Task '%s' raised while ending", task.name)


def _ancestors(task: Task) -> List[Task]:
    result = []
    parent = task.parent
    while parent is not None:
        result.append(parent)
        parent = parent.parent
    return result


def _contains(tasks: List[Task], task: Task) -> bool:
    return any(t is task for t in tasks)


def _remove(tasks: List[Task], task: Task) -> None:
    for i, t in enumerate(tasks):
        if t is task:
            del tasks[i]
            return


@dataclass
class TickLoopConfig:
    """Configuration for TickLoop.

    Attributes:
        loop_delay_ms: Control period in milliseconds.
        max_errors: Maximum consecutive failing ticks before stopping.
        stop_when_idle: Stop once no task is active or pending.
        register_signals: Install SIGINT/SIGTERM handlers (main thread only).
    """
    loop_delay_ms: int = 20
    max_errors: int = 10
    stop_when_idle: bool = True
    register_signals: bool = True


class TickLoop:
    """Fixed-period main loop for a CooperativeScheduler.

    Calls ``scheduler.run_once()`` every ``loop_delay_ms`` and sleeps for
    whatever remains of the period. Overrunning ticks are not made up.

    Example:
        >>> loop = TickLoop(scheduler, TickLoopConfig(loop_delay_ms=20))
        >>> scheduler.schedule(autonomous_routine)
        >>> loop.run()  # Blocks until stopped or idle
    """

    def __init__(
        self,
        scheduler: CooperativeScheduler,
        config: Optional[TickLoopConfig] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.scheduler = scheduler
        self.config = config or TickLoopConfig()
        self._sleep = sleep
        self._clock = clock

        # State
        self._running = False
        self._error_count = 0

        if self.config.register_signals and threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGINT, self._signal_handler)
            signal.signal(signal.SIGTERM, self._signal_handler)
        else:
            logger.debug("Skipping signal registration (not main thread or disabled)")

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        signal_name = signal.Signals(signum).name
        logger.info(f"Received {signal_name}, stopping tick loop...")
        self.stop()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def error_count(self) -> int:
        """Consecutive failing ticks so far."""
        return self._error_count

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Run the loop.

        Blocks until ``stop()`` is called, the scheduler goes idle (if
        configured), the error budget is exhausted or ``max_ticks`` ticks
        have run. Remaining tasks are cancelled on exit.

        Returns:
            Number of ticks run.
        """
        logger.info("Starting tick loop (period=%sms)", self.config.loop_delay_ms)
        self._running = True
        self._error_count = 0
        ticks = 0

        try:
            while self._running:
                if self.config.stop_when_idle and self.scheduler.is_idle:
                    logger.info("Scheduler idle after %s ticks, stopping", ticks)
                    break
                if max_ticks is not None and ticks >= max_ticks:
                    break

                loop_start = self._clock()
                self._tick()
                ticks += 1

                elapsed_ms = (self._clock() - loop_start) * 1000
                remaining_ms = self.config.loop_delay_ms - elapsed_ms
                if remaining_ms > 0:
                    self._sleep(remaining_ms / 1000.0)
                elif remaining_ms < 0:
                    logger.debug(f"Tick {ticks} overran period by {-remaining_ms:.1f}ms")
        finally:
            self._cleanup()
        return ticks

    def stop(self) -> None:
        """Stop the loop after the current tick."""
        self._running = False

    def _tick(self) -> None:
        try:
            failures = self.scheduler.run_once()
        except Exception as e:
            failures = 1
            logger.error(f"Error running tick: {e}", exc_info=True)

        if not failures:
            self._error_count = 0
            return

        self._error_count += 1
        if self._error_count >= self.config.max_errors:
            logger.critical(
                f"Max consecutive errors ({self.config.max_errors}) "
                "reached, stopping"
            )
            self.stop()

    def _cleanup(self) -> None:
        self._running = False
        self.scheduler.cancel_all()
        self.scheduler.stats.end_time = datetime.now()
        logger.info("Tick loop stopped: %s", self.scheduler.stats.summary())
