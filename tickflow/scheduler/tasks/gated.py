"""Tasks that only act while a safety check passes."""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Hashable, Iterable, Optional

from ..interfaces import DiagnosticSink, LoggingSink
from .base import Clock, Task

logger = logging.getLogger(__name__)

DEFAULT_UNSAFE_REASON = "the required safety conditions haven't been met"


class GatedTask(Task):
    """Task whose per-tick effect is gated behind ``is_safe()``.

    Subclasses implement ``is_safe()`` and put their per-tick work in
    ``execute_if_safe()`` instead of ``tick()``. Whenever ``is_safe()``
    returns False the task cancels itself on that same tick and emits one
    diagnostic line naming the task and the reason set with
    ``set_unsafe_reason()``.

    An optional ``timeout`` bounds the total runtime independently of the
    safety check. Running out of time is a normal finish, not a failure: no
    diagnostic is emitted and the tick that notices it does no work.
    Subclasses overriding ``is_finished()`` should combine their own
    condition with ``super().is_finished()``.

    Example:
        >>> class RaiseLift(GatedTask):
        ...     def is_safe(self):
        ...         if lift.at_top_limit():
        ...             self.set_unsafe_reason("the top limit switch is pressed")
        ...             return False
        ...         return True
        ...
        ...     def execute_if_safe(self):
        ...         lift.set(0.5)
    """

    def __init__(
        self,
        name: Optional[str] = None,
        timeout: Optional[float] = None,
        *,
        requirements: Iterable[Hashable] = (),
        sink: Optional[DiagnosticSink] = None,
        clock: Optional[Clock] = None,
    ):
        if timeout is not None and timeout < 0:
            raise ValueError(f"Timeout must be non-negative, got {timeout}")
        super().__init__(name, requirements=requirements, clock=clock)
        self.timeout = timeout
        self._sink = sink or LoggingSink()
        self._unsafe_reason: Optional[str] = None

    @property
    def unsafe_reason(self) -> Optional[str]:
        """Last reason set by the subclass, if any."""
        return self._unsafe_reason

    def set_unsafe_reason(self, reason: str) -> None:
        self._unsafe_reason = reason

    def is_timed_out(self) -> bool:
        return self.timeout is not None and self.elapsed >= self.timeout

    @abstractmethod
    def is_safe(self) -> bool:
        """Return True if the task may act this tick.

        Called every tick. Call ``set_unsafe_reason()`` before returning
        False to describe the failure.
        """
        raise NotImplementedError

    @abstractmethod
    def execute_if_safe(self) -> None:
        """Per-tick work, run only on ticks where ``is_safe()`` passed."""
        raise NotImplementedError

    def tick(self) -> None:
        if self.is_timed_out():
            return

        if self.is_safe():
            self.execute_if_safe()
            return

        self.cancel()
        reason = self._unsafe_reason or DEFAULT_UNSAFE_REASON
        self._sink.emit(
            logging.ERROR,
            f"GatedTask {self.name} cannot run because {reason}. Cancelling...",
        )

    def is_finished(self) -> bool:
        if self.is_timed_out():
            logger.info("'%s' timed out after %.3fs", self.name, self.elapsed)
            return True
        return False
