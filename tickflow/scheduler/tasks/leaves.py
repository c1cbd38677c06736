"""Primitive tasks used as building blocks and placeholders."""

from __future__ import annotations

import logging
from typing import Callable, Hashable, Iterable, Optional

from .base import Task

logger = logging.getLogger(__name__)


class NoopTask(Task):
    """Does nothing, needs nothing, finishes on its first poll."""

    def is_finished(self) -> bool:
        return True


class LogMessageTask(Task):
    """Log a message when started, then finish.

    Useful for marking progress inside sequences:

        >>> group.add_step(LogMessageTask("Intake deployed"))
    """

    def __init__(self, message: str, level: int = logging.INFO, *, name: Optional[str] = None):
        super().__init__(name or "LogMessage")
        self.message = message
        self.level = level

    def initialize(self) -> None:
        logger.log(self.level, self.message)

    def is_finished(self) -> bool:
        return True


class PerpetualTask(Task):
    """Repeat an action every tick until cancelled.

    Typically used as a hold/idle behaviour that owns a resource, e.g.
    commanding a motor to zero output.
    """

    def __init__(
        self,
        action: Callable[[], None],
        *,
        requirements: Iterable[Hashable] = (),
        name: Optional[str] = None,
    ):
        super().__init__(name, requirements=requirements)
        if not callable(action):
            raise TypeError(f"Action must be callable, got {type(action).__name__}")
        self._action = action

    def initialize(self) -> None:
        self._action()

    def tick(self) -> None:
        self._action()
