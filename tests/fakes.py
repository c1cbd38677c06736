"""Test doubles shared across the suite."""

from typing import Hashable, Iterable, List, Optional, Tuple

from tickflow.scheduler.tasks import GatedTask, Task


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTask(Task):
    """Task recording every lifecycle hook call.

    Finishes after ``finish_after`` ticks, or never if None.
    """

    def __init__(
        self,
        name: str = "recording",
        *,
        requirements: Iterable[Hashable] = (),
        finish_after: Optional[int] = None,
        log: Optional[List[str]] = None,
    ):
        super().__init__(name, requirements=requirements)
        self.finish_after = finish_after
        self.ticks = 0
        self.calls: List[Tuple] = []
        self._log = log

    def initialize(self) -> None:
        self.ticks = 0
        self.calls.append(("initialize",))

    def tick(self) -> None:
        self.ticks += 1
        self.calls.append(("tick",))
        if self._log is not None:
            self._log.append(self.name)

    def is_finished(self) -> bool:
        return self.finish_after is not None and self.ticks >= self.finish_after

    def end(self, interrupted: bool) -> None:
        self.calls.append(("end", interrupted))

    @property
    def init_count(self) -> int:
        return self.calls.count(("initialize",))

    @property
    def end_calls(self) -> List[bool]:
        return [c[1] for c in self.calls if c[0] == "end"]


class FakeSink:
    """Diagnostic sink capturing emitted lines."""

    def __init__(self):
        self.lines: List[Tuple[int, str]] = []

    def emit(self, level: int, text: str) -> None:
        self.lines.append((level, text))


class ScriptedGate(GatedTask):
    """GatedTask whose safety answers come from a script."""

    def __init__(self, safe: Iterable[bool], *, reason: Optional[str] = None, **kwargs):
        super().__init__(kwargs.pop("name", "ScriptedGate"), **kwargs)
        self._safe = iter(safe)
        self._reason = reason
        self.executed = 0

    def is_safe(self) -> bool:
        safe = next(self._safe, True)
        if not safe and self._reason:
            self.set_unsafe_reason(self._reason)
        return safe

    def execute_if_safe(self) -> None:
        self.executed += 1
