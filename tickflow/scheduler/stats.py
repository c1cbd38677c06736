"""Scheduler-level statistics tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class SchedulerStats:
    """Lightweight counters for a scheduler session."""

    ticks: int = 0
    scheduled: int = 0
    finished: int = 0
    cancelled: int = 0
    interrupted: int = 0
    failed: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    per_task_ticks: Dict[str, int] = field(default_factory=dict)

    def record_tick(self) -> None:
        if self.start_time is None:
            self.start_time = datetime.now()
        self.ticks += 1

    def record_step(self, task_name: str) -> None:
        self.per_task_ticks[task_name] = self.per_task_ticks.get(task_name, 0) + 1

    def summary(self) -> Dict[str, Any]:
        """Return a summary dictionary."""
        duration = None
        if self.start_time and self.end_time:
            duration = (self.end_time - self.start_time).total_seconds()

        return {
            "ticks": self.ticks,
            "scheduled": self.scheduled,
            "finished": self.finished,
            "cancelled": self.cancelled,
            "interrupted": self.interrupted,
            "failed": self.failed,
            "duration_seconds": duration,
            "per_task_ticks": dict(self.per_task_ticks),
        }

    def reset(self) -> None:
        """Reset stats for a new session."""
        self.ticks = 0
        self.scheduled = 0
        self.finished = 0
        self.cancelled = 0
        self.interrupted = 0
        self.failed = 0
        self.start_time = None
        self.end_time = None
        self.per_task_ticks = {}
