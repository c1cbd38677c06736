#!/usr/bin/env python3
"""Main entry point for tickflow.

Usage:
    # Run the demo routine with the default configuration
    python main.py --config config/settings.yaml

    # Force the manual-override path
    python main.py --config config/settings.yaml --override
"""

import argparse
import logging
import sys

from tickflow.config import AppConfig
from tickflow.scheduler import CooperativeScheduler, LoggingSink, TickLoop
from tickflow.scheduler.tasks import (
    BranchTask,
    GatedTask,
    LogMessageTask,
    OverrideFlag,
    OverridableGroup,
    PerpetualTask,
    Task,
)


def setup_logging(level: str = "INFO"):
    """Setup logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


class SimulatedOutputs:
    """Stand-in for actuator outputs so the demo has something to drive."""

    def __init__(self):
        self.values = {}
        self._logger = logging.getLogger("tickflow.demo.outputs")

    def setter(self, key: str, value: float):
        def apply():
            if self.values.get(key) != value:
                self._logger.debug("%s <- %s", key, value)
            self.values[key] = value
        return apply


class RaiseArm(GatedTask):
    """Raise the arm while the battery check passes."""

    def __init__(self, outputs: SimulatedOutputs, battery_ok, sink, timeout: float):
        super().__init__("RaiseArm", timeout=timeout, requirements={"arm"}, sink=sink)
        self._set_arm = outputs.setter("arm", 0.4)
        self._battery_ok = battery_ok

    def is_safe(self) -> bool:
        if not self._battery_ok():
            self.set_unsafe_reason("the battery voltage is too low")
            return False
        return True

    def execute_if_safe(self) -> None:
        self._set_arm()


def build_routine(config: AppConfig, scheduler: CooperativeScheduler, override: OverrideFlag) -> Task:
    """Compose the demo routine.

    Args:
        config: Application configuration.
        scheduler: Scheduler that branch children are handed to.
        override: Operator override source.

    Returns:
        Top-level task to schedule.
    """
    outputs = SimulatedOutputs()
    sink = LoggingSink(config.diagnostics.logger_name, config.diagnostics.level_number)

    def battery_ok() -> bool:
        return config.demo.battery_ok

    routine = OverridableGroup(override, name="DemoRoutine")
    routine.add_step(LogMessageTask("Routine started"))
    routine.add_step_unless_overridden(
        PerpetualTask(outputs.setter("drivetrain", 0.5), requirements={"drivetrain"}, name="DriveForward"),
        timeout=config.demo.run_seconds,
    )
    routine.add_step_if_overridden(LogMessageTask("Override engaged, skipping autonomous drive"))
    routine.add_step(
        BranchTask(
            RaiseArm(outputs, battery_ok, sink, timeout=config.demo.run_seconds),
            LogMessageTask("Battery low, leaving arm down", logging.WARNING),
            battery_ok,
            scheduler=scheduler,
            name="ArmIfBatteryOk",
        )
    )
    routine.add_step(
        PerpetualTask(outputs.setter("drivetrain", 0.0), requirements={"drivetrain"}, name="Brake")
        .with_timeout(0.1)
    )
    routine.add_step(LogMessageTask("Routine complete"))
    return routine


def run_routine(config: AppConfig, override: bool) -> int:
    """Run the demo routine until the scheduler goes idle.

    Args:
        config: Application configuration.
        override: Initial override state.

    Returns:
        Number of ticks run.
    """
    logger = logging.getLogger(__name__)

    scheduler = CooperativeScheduler()
    routine = build_routine(config, scheduler, OverrideFlag(override))
    loop = TickLoop(scheduler, config.tick_loop_config())

    logger.info("Scheduling '%s' with steps %s", routine.name, routine.step_names)
    scheduler.schedule(routine)
    return loop.run()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="tickflow - task combinators for tick-driven control loops"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/settings.yaml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--override",
        action="store_true",
        help="Engage the operator override for the demo routine",
    )
    args = parser.parse_args()

    # Load configuration using unified AppConfig
    try:
        config = AppConfig.from_yaml(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config.app.log_level)

    logger = logging.getLogger(__name__)
    logger.info(f"Starting {config.app.name} {config.app.version}")

    ticks = run_routine(config, override=args.override or config.demo.override)
    logger.info(f"Demo routine finished after {ticks} ticks")


if __name__ == "__main__":
    main()
