"""Choose between two tasks based on predicates evaluated at start."""

from __future__ import annotations

import logging
from typing import Optional

from ..interfaces import Scheduler
from .base import Task
from .conditions import Predicate, ensure_predicates
from .leaves import NoopTask

logger = logging.getLogger(__name__)


class BranchTask(Task):
    """Run ``if_task`` when every predicate holds, otherwise ``else_task``.

    Predicates are evaluated once, in order, when this task starts. The
    decision holds for the rest of the run even if the predicates change.

    Requirements are the union of both branches, since the scheduler needs
    them before the branch is known. The selected branch is scheduled as a
    child of this task, which keeps those requirements reserved for it.

    If the scheduler refuses the branch, or the branch stops before it is
    ever seen active (e.g. it raised while starting), this task finishes
    instead of waiting forever.

    Example:
        >>> BranchTask(
        ...     ScoreHigh(arm), ScoreLow(arm),
        ...     vision.has_target, arm.is_homed,
        ...     scheduler=scheduler,
        ... )
    """

    def __init__(
        self,
        if_task: Task,
        else_task: Task,
        *predicates: Predicate,
        scheduler: Scheduler,
        name: Optional[str] = None,
    ):
        if if_task is else_task:
            raise ValueError("Branches must be distinct tasks")
        self.predicates = ensure_predicates(predicates)
        super().__init__(
            name or f"RunIfElse[{if_task.name}, {else_task.name}]",
            requirements=if_task.requirements | else_task.requirements,
        )
        self.if_task = self.adopt(if_task)
        self.else_task = self.adopt(else_task)
        self._scheduler = scheduler
        self._selected: Optional[Task] = None
        self._has_run_once = False
        self._refused = False
        self._launched_at = 0

    @property
    def selected(self) -> Optional[Task]:
        """Branch chosen by the most recent start, if any."""
        return self._selected

    def _condition_holds(self) -> bool:
        for predicate in self.predicates:
            if not predicate():
                return False
        return True

    def initialize(self) -> None:
        self._has_run_once = False
        self._selected = self.if_task if self._condition_holds() else self.else_task
        logger.debug("'%s' selected '%s'", self.name, self._selected.name)
        self._launched_at = self._selected.run_count
        self._refused = not self._scheduler.schedule(self._selected)
        if self._refused:
            logger.warning("'%s' could not schedule '%s'", self.name, self._selected.name)

    def _selected_stopped(self) -> bool:
        # Started since initialize() and already over, whether or not it was seen active
        selected = self._selected
        return selected.run_count > self._launched_at and selected.state.is_terminal

    def is_finished(self) -> bool:
        if self._refused:
            return True
        active = self._scheduler.is_active(self._selected)
        if active and not self._has_run_once:
            self._has_run_once = True
        if active:
            return False
        return self._has_run_once or self._selected_stopped()

    def end(self, interrupted: bool) -> None:
        self._scheduler.cancel(self.if_task)
        self._scheduler.cancel(self.else_task)
        self._has_run_once = False
        self._refused = False


class ConditionalTask(BranchTask):
    """Run ``task`` only if every predicate holds; otherwise do nothing."""

    def __init__(
        self,
        task: Task,
        *predicates: Predicate,
        scheduler: Scheduler,
        name: Optional[str] = None,
    ):
        super().__init__(
            task,
            NoopTask(),
            *predicates,
            scheduler=scheduler,
            name=name or f"RunIf[{task.name}]",
        )
