"""Tests for SequentialGroup and OverridableGroup."""

import pytest

from tickflow.scheduler.tasks import (
    OverrideFlag,
    OverridableGroup,
    SequentialGroup,
    SkipMode,
    TaskState,
    TimeBoundedTask,
)

from .fakes import RecordingTask, ScriptedGate


# ============================================================
# SequentialGroup Tests
# ============================================================

class TestSequentialGroup:
    """Tests for the plain sequential runner."""

    def test_runs_steps_in_order(self):
        """Test steps run one after another."""
        log = []
        first = RecordingTask("first", finish_after=2, log=log)
        second = RecordingTask("second", finish_after=1, log=log)
        group = SequentialGroup().add_step(first).add_step(second)

        group.start()
        while group.is_running:
            group.step()

        assert log == ["first", "first", "second"]
        assert group.state is TaskState.FINISHED

    def test_next_step_initialized_same_tick(self):
        """Test the next step starts in the tick the previous one finishes."""
        first = RecordingTask("first", finish_after=1)
        second = RecordingTask("second")
        group = SequentialGroup().add_step(first).add_step(second)

        group.start()
        group.step()

        assert second.init_count == 1
        assert second.ticks == 0
        assert group.current_step.task is second

    def test_requirements_union(self):
        """Test the group declares all step requirements."""
        group = SequentialGroup()
        group.add_step(RecordingTask(requirements={"arm"}))
        group.add_step(RecordingTask(requirements={"drivetrain"}), timeout=1.0)

        assert group.requirements == frozenset({"arm", "drivetrain"})

    def test_empty_group_finishes(self):
        """Test an empty group finishes on its first poll."""
        group = SequentialGroup()

        group.start()
        group.step()

        assert group.state is TaskState.FINISHED

    def test_step_timeout(self, clock):
        """Test a per-step timeout bounds that step."""
        first = RecordingTask("first")
        second = RecordingTask("second")
        group = SequentialGroup(clock=clock).add_step(first, timeout=1.0).add_step(second)

        group.start()
        group.step()
        clock.advance(1.0)
        group.step()

        assert first.state is TaskState.CANCELLED
        assert second.is_running
        assert isinstance(group.steps[0].runner, TimeBoundedTask)

    def test_cancelled_step_aborts_group(self, sink):
        """Test a step cancelling itself cancels the whole group."""
        gate = ScriptedGate([True, False], sink=sink)
        after = RecordingTask("after")
        group = SequentialGroup().add_step(gate).add_step(after)

        group.start()
        group.step()
        group.step()

        assert group.state is TaskState.CANCELLED
        assert after.calls == []
        assert len(sink.lines) == 1

    def test_cancelled_step_with_timeout_aborts_group(self, clock, sink):
        """Test a self-cancelling step still aborts the group behind a timeout wrapper."""
        gate = ScriptedGate([True, False], sink=sink, clock=clock)
        after = RecordingTask("after")
        group = SequentialGroup(clock=clock).add_step(gate, timeout=10.0).add_step(after)

        group.start()
        for _ in range(4):
            group.step()

        assert gate.state is TaskState.CANCELLED
        assert group.state is TaskState.CANCELLED
        assert after.init_count == 0
        assert len(sink.lines) == 1

    def test_gated_step_own_timeout_continues(self, clock, sink):
        """Test a gated step running out its own timeout lets the group continue."""
        gate = ScriptedGate([], sink=sink, timeout=1.0, clock=clock)
        after = RecordingTask("after")
        group = SequentialGroup(clock=clock).add_step(gate).add_step(after)

        group.start()
        group.step()
        clock.advance(1.0)
        group.step()

        assert gate.state is TaskState.FINISHED
        assert group.is_running
        assert after.init_count == 1
        assert sink.lines == []

    def test_end_cancels_current_step(self):
        """Test cancelling the group cancels the step in progress once."""
        step = RecordingTask()
        group = SequentialGroup().add_step(step)
        group.start()
        group.step()

        group.cancel()
        group.cancel()

        assert step.end_calls == [True]

    def test_add_while_running_rejected(self):
        """Test steps cannot be added to a running group."""
        group = SequentialGroup().add_step(RecordingTask())
        group.start()

        with pytest.raises(RuntimeError):
            group.add_step(RecordingTask())

    def test_step_names(self):
        """Test step names are reported in order."""
        group = SequentialGroup()
        group.add_step(RecordingTask("a")).add_step(RecordingTask("b"))

        assert group.step_names == ["a", "b"]
        assert group.current_step is None


# ============================================================
# OverridableGroup Tests
# ============================================================

class TestOverridableGroup:
    """Tests for override-conditioned steps."""

    def test_skip_unless_overridden(self, scheduler):
        """Test an overridden step is skipped with zero ticks."""
        override = OverrideFlag(True)
        step1 = RecordingTask("step1")
        step2 = RecordingTask("step2")
        group = OverridableGroup(override)
        group.add_step_unless_overridden(step1)
        group.add_step(step2)

        scheduler.schedule(group)
        scheduler.run_once()

        assert step1.calls == []
        assert step2.init_count == 1
        assert step2.ticks == 1

    def test_runs_unless_overridden(self):
        """Test the step runs while the override is off."""
        step = RecordingTask()
        group = OverridableGroup(OverrideFlag(False)).add_step_unless_overridden(step)

        group.start()

        assert step.is_running

    def test_if_overridden(self):
        """Test if-overridden steps only run with the override engaged."""
        manual = RecordingTask("manual", finish_after=1)
        auto = RecordingTask("auto", finish_after=1)
        override = OverrideFlag(False)
        group = OverridableGroup(override)
        group.add_step_if_overridden(manual)
        group.add_step_unless_overridden(auto)

        group.start()
        group.step()

        assert manual.calls == []
        assert auto.state is TaskState.FINISHED
        assert group.state is TaskState.FINISHED

    def test_override_sampled_when_step_reached(self):
        """Test flipping the override mid-sequence affects later steps only."""
        override = OverrideFlag(False)
        step1 = RecordingTask("step1", finish_after=2)
        step2 = RecordingTask("step2")
        group = OverridableGroup(override)
        group.add_step_unless_overridden(step1)
        group.add_step_unless_overridden(step2)

        group.start()
        group.step()
        override.set()
        group.step()

        assert step1.state is TaskState.FINISHED
        assert step1.end_calls == [False]
        assert step2.calls == []
        assert group.state is TaskState.FINISHED

    def test_step_with_timeout(self, clock):
        """Test per-step timeouts on overridable steps."""
        step = RecordingTask()
        group = OverridableGroup(OverrideFlag(True), clock=clock)
        group.add_step_if_overridden(step, timeout=0.5)

        group.start()
        group.step()
        clock.advance(0.5)
        group.step()

        assert step.state is TaskState.CANCELLED
        assert group.state is TaskState.FINISHED
        assert group.steps[0].mode is SkipMode.RUN_IF_OVERRIDDEN
        assert group.steps[0].timeout == 0.5

    def test_unsafe_step_with_timeout_aborts_group(self, clock, sink):
        """Test a gated step that fails its safety check stops the remaining steps."""
        gate = ScriptedGate([False], reason="the lift is jammed", sink=sink, clock=clock, name="Lift")
        after = RecordingTask("after")
        group = OverridableGroup(OverrideFlag(False), clock=clock)
        group.add_step_unless_overridden(gate, timeout=2.0)
        group.add_step_unless_overridden(after)

        group.start()
        group.step()
        group.step()

        assert group.state is TaskState.CANCELLED
        assert after.calls == []
        assert sink.lines[0][1] == "GatedTask Lift cannot run because the lift is jammed. Cancelling..."

    def test_all_skipped(self):
        """Test a group whose steps are all skipped finishes immediately."""
        group = OverridableGroup(OverrideFlag(True))
        group.add_step_unless_overridden(RecordingTask())
        group.add_step_unless_overridden(RecordingTask())

        group.start()
        group.step()

        assert group.state is TaskState.FINISHED

    def test_chaining(self):
        """Test builder methods return the group."""
        group = OverridableGroup(OverrideFlag())

        result = group.add_step_unless_overridden(RecordingTask()).add_step_if_overridden(RecordingTask())

        assert result is group
        assert len(group.steps) == 2
