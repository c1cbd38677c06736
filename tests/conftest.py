"""Pytest configuration and fixtures."""

from unittest.mock import MagicMock

import pytest

from tickflow.scheduler import CooperativeScheduler, Scheduler

from .fakes import FakeSink, ManualClock


# ============================================================
# Clock Fixtures
# ============================================================

@pytest.fixture
def clock():
    """Create a manually advanced clock."""
    return ManualClock()


# ============================================================
# Scheduler Fixtures
# ============================================================

@pytest.fixture
def scheduler():
    """Create a real cooperative scheduler."""
    return CooperativeScheduler()


@pytest.fixture
def mock_scheduler():
    """Create a mock scheduler collaborator."""
    sched = MagicMock(spec=Scheduler)
    sched.schedule.return_value = True
    sched.is_active.return_value = False
    return sched


# ============================================================
# Diagnostics Fixtures
# ============================================================

@pytest.fixture
def sink():
    """Create a capturing diagnostic sink."""
    return FakeSink()
