"""Progress tracking — step records and broadcast feeds."""

from liftoff.progress.feed import Feed, FeedClosedError
from liftoff.progress.tracker import ExecutionRecord, ProgressTracker, UnknownStepError

__all__ = [
    "ExecutionRecord",
    "Feed",
    "FeedClosedError",
    "ProgressTracker",
    "UnknownStepError",
]
