"""Shared test fixtures."""

import pytest

from liftoff.progress.tracker import ProgressTracker
from liftoff.reporting.reporter import ErrorReporter
from liftoff.startup.scheduler import StartupScheduler


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def tracker() -> ProgressTracker:
    t = ProgressTracker()
    yield t
    t.dispose()


@pytest.fixture
def reporter() -> ErrorReporter:
    return ErrorReporter(enabled=True)


@pytest.fixture
def scheduler(
    tracker: ProgressTracker, reporter: ErrorReporter, sleep: RecordingSleep
) -> StartupScheduler:
    return StartupScheduler(tracker=tracker, reporter=reporter, sleep=sleep, concurrent=False)
