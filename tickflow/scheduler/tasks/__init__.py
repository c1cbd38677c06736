"""Task abstractions and combinators."""

from .base import ResourceSet, Task, TaskState
from .conditions import Overridable, OverrideFlag, Predicate, PredicateOverride, all_of
from .gated import DEFAULT_UNSAFE_REASON, GatedTask
from .leaves import LogMessageTask, NoopTask, PerpetualTask
from .overridable import OverridableGroup
from .run_for import TimeBoundedTask
from .run_if_else import BranchTask, ConditionalTask
from .run_until import ConditionBoundedTask
from .sequence import GroupStep, SequentialGroup, SkipMode

__all__ = [
    # Base
    "Task",
    "TaskState",
    "ResourceSet",
    # Conditions
    "Predicate",
    "Overridable",
    "OverrideFlag",
    "PredicateOverride",
    "all_of",
    # Leaves
    "NoopTask",
    "LogMessageTask",
    "PerpetualTask",
    # Combinators
    "TimeBoundedTask",
    "ConditionBoundedTask",
    "BranchTask",
    "ConditionalTask",
    "GatedTask",
    "DEFAULT_UNSAFE_REASON",
    "SequentialGroup",
    "GroupStep",
    "SkipMode",
    "OverridableGroup",
]
