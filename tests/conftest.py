"""
Shared fixtures for filesystem and command tests.
"""

import pytest
from datetime import datetime, timedelta, timezone

from linux_sim.services.filesystem import VirtualFileSystem


class StepClock:
    """Clock that advances one second per call"""

    def __init__(self, start=datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def fs(clock):
    """Freshly seeded filesystem with a deterministic clock"""
    return VirtualFileSystem(clock=clock)
