"""Abstract interfaces for the scheduler collaborator and diagnostic output."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .tasks.base import ResourceSet, Task


class Scheduler(ABC):
    """What combinators need from the scheduler that runs them.

    Implementations own the table of active tasks and enforce mutual
    exclusion on declared requirements. Combinators only hand tasks over
    and observe them; they never inspect the table directly.
    """

    @abstractmethod
    def schedule(self, task: "Task") -> bool:
        """Request that ``task`` be started.

        Returns:
            True if the request was accepted.
        """
        pass

    @abstractmethod
    def cancel(self, task: "Task") -> None:
        """Stop ``task`` if it is active or pending. Must be idempotent."""
        pass

    @abstractmethod
    def is_active(self, task: "Task") -> bool:
        """Check if ``task`` is currently run by this scheduler."""
        pass

    def resources(self, task: "Task") -> "ResourceSet":
        """Resource set the scheduler reserves for ``task``."""
        return task.requirements


class DiagnosticSink(Protocol):
    """Protocol for human-readable diagnostics (e.g. a driver-station console)."""

    def emit(self, level: int, text: str) -> None:
        ...


class LoggingSink:
    """Diagnostic sink writing to a stdlib logger.

    Diagnostics below ``min_level`` are dropped.
    """

    def __init__(self, logger_name: str = "tickflow.diagnostics", min_level: int = logging.NOTSET):
        self._logger = logging.getLogger(logger_name)
        self.min_level = min_level

    def emit(self, level: int, text: str) -> None:
        if level < self.min_level:
            return
        self._logger.log(level, text)
