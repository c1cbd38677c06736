"""Run a task until an external condition becomes true."""

from __future__ import annotations

import logging
from typing import Optional

from ..interfaces import Scheduler
from .base import Task
from .conditions import Predicate, ensure_predicates

logger = logging.getLogger(__name__)


class ConditionBoundedTask(Task):
    """Start a child task and finish when ``stop_predicate`` returns True.

    The child is handed to the scheduler as an independent task. With
    ``cancel_on_end=False`` this task acts as a one-shot trigger: the child
    keeps running after this task ends.

    Note:
        The child's requirements are not merged into this task's own.
        Callers that need this task to hold the child's resources must
        declare them with ``add_requirements``.
    """

    def __init__(
        self,
        child: Task,
        stop_predicate: Predicate,
        cancel_on_end: bool = True,
        *,
        scheduler: Scheduler,
        name: Optional[str] = None,
    ):
        super().__init__(name or f"RunUntil[{child.name}]")
        self.child = child
        self.stop_predicate = ensure_predicates([stop_predicate])[0]
        self.cancel_on_end = cancel_on_end
        self._scheduler = scheduler

    def initialize(self) -> None:
        if not self._scheduler.schedule(self.child):
            logger.warning("'%s': child '%s' was not accepted by the scheduler", self.name, self.child.name)

    def is_finished(self) -> bool:
        return bool(self.stop_predicate())

    def end(self, interrupted: bool) -> None:
        if self.cancel_on_end:
            self._scheduler.cancel(self.child)
