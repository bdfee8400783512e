"""Pytest configuration and fixtures."""

import shutil
import tempfile
from pathlib import Path

import pytest

from planning_agent.notifications.channel import NotificationChannel


class FakeClock:
    """Manually advanced clock for throttle and health arithmetic."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingChannel(NotificationChannel):
    """In-memory sink that records every message it is handed."""

    name = "recorder"

    def __init__(self, result: bool = True, error: Exception | None = None):
        self.sent: list[tuple[str, str | None]] = []
        self.result = result
        self.error = error

    async def send(self, message: str, channel: str | None = None) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append((message, channel))
        return self.result

    @property
    def messages(self) -> list[str]:
        return [message for message, _ in self.sent]

    @property
    def channels(self) -> list[str | None]:
        return [channel for _, channel in self.sent]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test artifacts."""
    dirpath = tempfile.mkdtemp()
    yield Path(dirpath)
    shutil.rmtree(dirpath, ignore_errors=True)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordingChannel()


@pytest.fixture
def planning_stats():
    """The Q1 planning run used across dispatcher and coordinator tests."""
    from planning_agent.notifications.events import PlanningStatistics

    return PlanningStatistics(
        planning_title="Q1 Planning",
        epic_count=1,
        feature_count=3,
        story_count=8,
        enabler_count=0,
        duration_minutes=4.2,
        source_document="PI Doc",
    )
