"""Run a task for at most a fixed duration."""

from __future__ import annotations

import logging
from typing import Optional

from .base import Clock, Task, TaskState

logger = logging.getLogger(__name__)


class TimeBoundedTask(Task):
    """Run a child task for a given number of seconds, then cancel it.

    Finishes when the duration has elapsed or the child finishes on its own,
    whichever comes first. The child is driven directly, so it never appears
    in the scheduler; this task declares the child's requirements instead.

    The first completion poll after start only checks the elapsed time. A
    zero duration therefore finishes on the first poll.

    A child that cancels itself still ends this task normally;
    ``child_aborted`` tells owners that this is what happened.

    Example:
        >>> # Drive forward for 3 seconds
        >>> scheduler.schedule(TimeBoundedTask(DriveForward(chassis), 3.0))
    """

    def __init__(
        self,
        child: Task,
        duration: float,
        *,
        name: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        if duration < 0:
            raise ValueError(f"Duration must be non-negative, got {duration}")
        super().__init__(
            name or f"RunFor[{child.name}]",
            requirements=child.requirements,
            clock=clock,
        )
        self.child = self.adopt(child)
        self.duration = float(duration)
        self._first_tick = True
        self._child_aborted = False

    @property
    def child_aborted(self) -> bool:
        """True if the child cancelled itself during the current run."""
        return self._child_aborted

    def is_timed_out(self) -> bool:
        return self.elapsed >= self.duration

    def initialize(self) -> None:
        self._first_tick = True
        self._child_aborted = False
        self.child.start()

    def tick(self) -> None:
        self.child.step()
        if self.child.state is TaskState.CANCELLED:
            self._child_aborted = True

    def is_finished(self) -> bool:
        if self._first_tick:
            self._first_tick = False
            return self.is_timed_out()
        return self.is_timed_out() or not self.child.is_running

    def end(self, interrupted: bool) -> None:
        if self.child.is_running:
            logger.debug("'%s' cancelling '%s' after %.3fs", self.name, self.child.name, self.elapsed)
        self.child.cancel()
        self._first_tick = True
