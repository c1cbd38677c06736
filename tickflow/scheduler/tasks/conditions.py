"""Predicates and override sources for combinators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Sequence, Tuple

Predicate = Callable[[], bool]


def ensure_predicates(predicates: Sequence[Predicate]) -> Tuple[Predicate, ...]:
    """Validate a non-empty list of callables."""
    if not predicates:
        raise ValueError("At least one predicate is required")
    for predicate in predicates:
        if not callable(predicate):
            raise TypeError(f"Predicate must be callable, got {type(predicate).__name__}")
    return tuple(predicates)


def all_of(*predicates: Predicate) -> Predicate:
    """Short-circuit conjunction evaluated in declaration order."""
    checked = ensure_predicates(predicates)

    def combined() -> bool:
        return all(predicate() for predicate in checked)

    return combined


class Overridable(ABC):
    """Interface for an externally controlled override switch."""

    @abstractmethod
    def is_overridden(self) -> bool:
        """Return True if the override is engaged."""
        raise NotImplementedError

    def is_not_overridden(self) -> bool:
        return not self.is_overridden()


class OverrideFlag(Overridable):
    """Settable override, e.g. bound to an operator button."""

    def __init__(self, initial: bool = False):
        self._value = bool(initial)

    def is_overridden(self) -> bool:
        return self._value

    def set(self, value: bool = True) -> None:
        self._value = bool(value)

    def clear(self) -> None:
        self._value = False

    def toggle(self) -> bool:
        self._value = not self._value
        return self._value

    def __repr__(self) -> str:
        return f"OverrideFlag({self._value})"


class PredicateOverride(Overridable):
    """Adapt any predicate into an override source."""

    def __init__(self, predicate: Predicate):
        self._predicate = ensure_predicates([predicate])[0]

    def is_overridden(self) -> bool:
        return bool(self._predicate())
