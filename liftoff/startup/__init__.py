"""Startup scheduling — task model, retry policy, and the dependency resolver."""

from liftoff.startup.backoff import Backoff
from liftoff.startup.errors import DuplicateTaskError, FatalStartupError
from liftoff.startup.models import InitTask, StartupResult, TaskState
from liftoff.startup.scheduler import StartupScheduler

__all__ = [
    "Backoff",
    "DuplicateTaskError",
    "FatalStartupError",
    "InitTask",
    "StartupResult",
    "StartupScheduler",
    "TaskState",
]
