from .interfaces import DiagnosticSink, LoggingSink, Scheduler
from .stats import SchedulerStats
from .task_manager import CooperativeScheduler, TickLoop, TickLoopConfig

__all__ = [
    # Interfaces
    "Scheduler",
    "DiagnosticSink",
    "LoggingSink",
    # Implementations
    "CooperativeScheduler",
    "TickLoop",
    "TickLoopConfig",
    "SchedulerStats",
]
