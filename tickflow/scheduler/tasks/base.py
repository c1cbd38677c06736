"""Task base classes and lifecycle types."""

from __future__ import annotations

import logging
import time
from abc import ABC
from enum import Enum
from typing import TYPE_CHECKING, Callable, FrozenSet, Hashable, Iterable, Optional

if TYPE_CHECKING:
    from .run_for import TimeBoundedTask

logger = logging.getLogger(__name__)

ResourceSet = FrozenSet[Hashable]
Clock = Callable[[], float]


class TaskState(str, Enum):
    """Lifecycle state of a task."""

    IDLE = "idle"
    INITIALIZED = "initialized"
    ACTIVE = "active"
    FINISHED = "finished"
    CANCELLED = "cancelled"

    @property
    def is_running(self) -> bool:
        return self in (TaskState.INITIALIZED, TaskState.ACTIVE)

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.FINISHED, TaskState.CANCELLED)


class Task(ABC):
    """Stateful unit of schedulable work.

    Subclasses override the lifecycle hooks:

    - ``initialize()`` once when the task starts,
    - ``tick()`` once per control period,
    - ``is_finished()`` after every tick,
    - ``end(interrupted)`` once when the task stops.

    The hooks are never called directly by owners. Whoever drives the task
    (the scheduler or a parent combinator) uses ``start()``, ``step()`` and
    ``cancel()``, which keep ``state`` consistent and make stopping idempotent.

    Example:
        >>> class Blink(Task):
        ...     def tick(self):
        ...         led.toggle()
        >>> task = Blink(requirements={"led"})
        >>> task.start()
        >>> task.step()
    """

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        requirements: Iterable[Hashable] = (),
        clock: Optional[Clock] = None,
    ):
        self._name = name
        self._requirements: ResourceSet = frozenset(requirements)
        self._clock: Clock = clock or time.monotonic
        self._state = TaskState.IDLE
        self._start_time: Optional[float] = None
        self._run_count = 0
        self.parent: Optional[Task] = None

    # ------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------

    @property
    def name(self) -> str:
        """Human-friendly task name for logging."""
        return self._name or self.__class__.__name__

    @property
    def requirements(self) -> ResourceSet:
        """Exclusive resources this task needs while running."""
        return self._requirements

    def add_requirements(self, *resources: Hashable) -> None:
        """Declare additional exclusive resources."""
        if self._state.is_running:
            raise RuntimeError(f"Cannot change requirements of running task '{self.name}'")
        self._requirements = self._requirements | frozenset(resources)

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    @property
    def run_count(self) -> int:
        """Number of times the task has been started."""
        return self._run_count

    @property
    def elapsed(self) -> float:
        """Seconds since the last ``start()``; 0.0 if never started."""
        if self._start_time is None:
            return 0.0
        return self._clock() - self._start_time

    # ------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------

    def initialize(self) -> None:
        """Called once when the task starts."""

    def tick(self) -> None:
        """Called once per control period while running."""

    def is_finished(self) -> bool:
        """Polled after every tick. Default: run until cancelled."""
        return False

    def end(self, interrupted: bool) -> None:
        """Called once when the task stops, finished or cancelled."""

    # ------------------------------------------------------------
    # Driver API
    # ------------------------------------------------------------

    def start(self) -> None:
        """Start the task. No-op if it is already running."""
        if self._state.is_running:
            return
        self._start_time = self._clock()
        self._run_count += 1
        self._state = TaskState.INITIALIZED
        logger.debug("Task '%s' initializing", self.name)
        self.initialize()

    def step(self) -> None:
        """Run one tick and finish the task if it reports completion."""
        if not self._state.is_running:
            return
        self.tick()
        # tick() may have cancelled the task
        if not self._state.is_running:
            return
        self._state = TaskState.ACTIVE
        if self.is_finished():
            self._stop(interrupted=False)

    def cancel(self) -> None:
        """Stop the task as interrupted. Safe to call in any state."""
        self._stop(interrupted=True)

    def _stop(self, interrupted: bool) -> None:
        if not self._state.is_running:
            return
        # Mark terminal before end() so re-entrant cancels are no-ops
        self._state = TaskState.CANCELLED if interrupted else TaskState.FINISHED
        logger.debug(
            "Task '%s' %s", self.name, "cancelled" if interrupted else "finished"
        )
        self.end(interrupted)

    # ------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------

    def adopt(self, child: "Task") -> "Task":
        """Take exclusive ownership of ``child``."""
        if child is self:
            raise ValueError(f"Task '{self.name}' cannot own itself")
        if child.parent is not None and child.parent is not self:
            raise ValueError(
                f"Task '{child.name}' is already owned by '{child.parent.name}'"
            )
        child.parent = self
        return child

    def with_timeout(self, seconds: float) -> "TimeBoundedTask":
        """Wrap this task so it is cancelled after ``seconds``."""
        from .run_for import TimeBoundedTask

        return TimeBoundedTask(self, seconds, clock=self._clock)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, state={self._state.value})"
