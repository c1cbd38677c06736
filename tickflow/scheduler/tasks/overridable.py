"""Sequences whose steps depend on an operator override."""

from __future__ import annotations

from typing import Optional

from .base import Clock, Task
from .conditions import Overridable
from .sequence import GroupStep, SequentialGroup, SkipMode


class OverridableGroup(SequentialGroup):
    """Sequential group with steps conditioned on an override source.

    The override is sampled when the sequence reaches each step, not once
    for the whole group, so flipping it mid-sequence changes which of the
    later steps run. A step already in progress is never affected.

    Example:
        >>> manual = OverrideFlag()
        >>> group = OverridableGroup(manual, name="Climb")
        >>> group.add_step_unless_overridden(AutoAlign(chassis), timeout=3.0)
        >>> group.add_step_if_overridden(WaitForDriver(chassis))
        >>> group.add_step(ExtendHooks(climber))
    """

    def __init__(
        self,
        overridable: Overridable,
        *,
        name: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(name, clock=clock)
        self.overridable = overridable

    def add_step_unless_overridden(self, task: Task, timeout: Optional[float] = None) -> "OverridableGroup":
        """Append a step that is skipped while the override is engaged."""
        self._add(task, SkipMode.RUN_UNLESS_OVERRIDDEN, timeout)
        return self

    def add_step_if_overridden(self, task: Task, timeout: Optional[float] = None) -> "OverridableGroup":
        """Append a step that only runs while the override is engaged."""
        self._add(task, SkipMode.RUN_IF_OVERRIDDEN, timeout)
        return self

    def should_run(self, step: GroupStep) -> bool:
        if step.mode is SkipMode.RUN_UNLESS_OVERRIDDEN:
            return self.overridable.is_not_overridden()
        if step.mode is SkipMode.RUN_IF_OVERRIDDEN:
            return self.overridable.is_overridden()
        return True
