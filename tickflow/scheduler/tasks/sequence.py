"""Run tasks one after another."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .base import Clock, Task, TaskState
from .run_for import TimeBoundedTask

logger = logging.getLogger(__name__)


class SkipMode(str, Enum):
    """When a sequence step runs."""

    ALWAYS = "always"
    RUN_UNLESS_OVERRIDDEN = "run_unless_overridden"
    RUN_IF_OVERRIDDEN = "run_if_overridden"


@dataclass
class GroupStep:
    """Single entry of a sequential group.

    Attributes:
        task: Task as registered by the caller.
        mode: Condition deciding whether the step runs.
        timeout: Optional per-step bound in seconds.
        runner: Task actually driven (``task`` or its timeout wrapper).
    """

    task: Task
    mode: SkipMode
    timeout: Optional[float]
    runner: Task


class SequentialGroup(Task):
    """Ordered sequence of steps driven by a single runner.

    When the runner reaches a step it asks ``should_run(step)`` at that
    moment. A skipped step is never initialized and costs no tick: the
    runner moves straight on to the next step. When a step finishes, the
    next one is started in the same tick and gets its first tick on the
    following one.

    If a step cancels itself the whole group is cancelled.

    Example:
        >>> group = SequentialGroup(name="Intake")
        >>> group.add_step(DeployIntake(intake))
        >>> group.add_step(RunRollers(intake), timeout=2.0)
        >>> scheduler.schedule(group)
    """

    def __init__(self, name: Optional[str] = None, *, clock: Optional[Clock] = None):
        super().__init__(name, clock=clock)
        self._steps: List[GroupStep] = []
        self._index = 0

    def add_step(self, task: Task, timeout: Optional[float] = None) -> "SequentialGroup":
        """Append a step that always runs.

        Returns:
            Self for method chaining.
        """
        return self._add(task, SkipMode.ALWAYS, timeout)

    def _add(self, task: Task, mode: SkipMode, timeout: Optional[float]) -> "SequentialGroup":
        if self.is_running:
            raise RuntimeError(f"Cannot add steps to running group '{self.name}'")
        runner = task if timeout is None else TimeBoundedTask(task, timeout, clock=self._clock)
        self.adopt(runner)
        self._steps.append(GroupStep(task=task, mode=mode, timeout=timeout, runner=runner))
        self.add_requirements(*runner.requirements)
        logger.debug("Added step '%s' (%s) to '%s'", task.name, mode.value, self.name)
        return self

    @property
    def steps(self) -> List[GroupStep]:
        return list(self._steps)

    @property
    def step_names(self) -> List[str]:
        """Names of all steps in order."""
        return [step.task.name for step in self._steps]

    @property
    def current_step(self) -> Optional[GroupStep]:
        """Step in progress, or None before start and after the last step."""
        if self.is_running and self._index < len(self._steps):
            return self._steps[self._index]
        return None

    def should_run(self, step: GroupStep) -> bool:
        return True

    def _advance(self) -> None:
        """Start the step at the current index, skipping those that should not run."""
        while self._index < len(self._steps):
            step = self._steps[self._index]
            if self.should_run(step):
                step.runner.start()
                return
            logger.debug("'%s' skipping step '%s'", self.name, step.task.name)
            self._index += 1

    def initialize(self) -> None:
        self._index = 0
        self._advance()

    def tick(self) -> None:
        if self._index >= len(self._steps):
            return
        step = self._steps[self._index]
        step.runner.step()
        if _aborted(step.runner):
            logger.warning(
                "Step '%s' of '%s' was cancelled, aborting sequence",
                step.task.name,
                self.name,
            )
            self.cancel()
            return
        if not step.runner.is_running:
            self._index += 1
            self._advance()

    def is_finished(self) -> bool:
        return self._index >= len(self._steps)

    def end(self, interrupted: bool) -> None:
        if self._index < len(self._steps):
            self._steps[self._index].runner.cancel()


def _aborted(runner: Task) -> bool:
    # A timeout wrapper ends normally when its child cancels itself
    if isinstance(runner, TimeBoundedTask) and runner.child_aborted:
        return True
    return runner.state is TaskState.CANCELLED
