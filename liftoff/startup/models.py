"""InitTask data model and startup result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from liftoff.config import settings

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    Initializer = Callable[[], Awaitable[None]]


class TaskState(StrEnum):
    """Where a task is in its startup lifecycle."""

    PENDING = "pending"
    RUNNING = "running"
    RETRY_WAIT = "retry_wait"
    FALLBACK_RUNNING = "fallback_running"
    COMPLETED = "completed"
    TOLERATED_FAILURE = "tolerated_failure"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.TOLERATED_FAILURE, TaskState.ABORTED)

    @property
    def satisfies_dependents(self) -> bool:
        """Whether dependents may start once a task reaches this state."""
        return self in (TaskState.COMPLETED, TaskState.TOLERATED_FAILURE)


def _default_max_retries() -> int:
    return settings.startup_max_retries


@dataclass
class InitTask:
    """A named unit of startup work.

    Attributes:
        name: Unique identifier; the dependency-graph vertex key.
        initializer: Zero-argument coroutine function. Raising means failure.
        dependencies: Names that must be settled before this task starts.
        is_critical: Abort the whole startup if this task cannot recover.
        fallback: Optional coroutine function run once retries are exhausted.
        max_retries: Retries after the first failed attempt.
        description: Text used for progress status lines.
        completed: Run-state flag, set by the scheduler.
        state: Lifecycle state, set by the scheduler.
    """

    name: str
    initializer: Initializer
    dependencies: tuple[str, ...] = ()
    is_critical: bool = False
    fallback: Initializer | None = None
    max_retries: int = field(default_factory=_default_max_retries)
    description: str = ""
    completed: bool = field(default=False, compare=False)
    state: TaskState = field(default=TaskState.PENDING, compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Task name must not be empty"
            raise ValueError(msg)
        if self.max_retries < 0:
            msg = f"max_retries must be >= 0 (got {self.max_retries} for '{self.name}')"
            raise ValueError(msg)
        self.dependencies = tuple(self.dependencies)
        if not self.description:
            self.description = f"Initializing {self.name}"

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def is_ready(self, completed: set[str]) -> bool:
        """True when every dependency is in *completed*."""
        return all(dep in completed for dep in self.dependencies)


@dataclass(frozen=True)
class StartupResult:
    """Outcome of one ``StartupScheduler.execute()`` call.

    Attributes:
        completed: Every task counted as done, in completion order
            (includes recovered and tolerated tasks).
        recovered: Tasks completed by their fallback.
        tolerated: Non-critical tasks that failed and were let through.
        unresolved: Tasks that never ran because their dependencies could
            not be satisfied.
        stalled: Whether resolution stopped on an unsatisfiable graph.
    """

    completed: tuple[str, ...] = ()
    recovered: tuple[str, ...] = ()
    tolerated: tuple[str, ...] = ()
    unresolved: tuple[str, ...] = ()
    stalled: bool = False

    @property
    def ok(self) -> bool:
        return not self.stalled
