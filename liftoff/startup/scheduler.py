"""StartupScheduler — dependency-ordered execution with retry and fallback."""

from __future__ import annotations

import asyncio
import logging
import traceback
from collections import deque
from typing import TYPE_CHECKING

from liftoff.config import settings
from liftoff.startup.backoff import Backoff
from liftoff.startup.errors import DuplicateTaskError, FatalStartupError
from liftoff.startup.models import InitTask, StartupResult, TaskState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from liftoff.progress.tracker import ProgressTracker
    from liftoff.reporting.reporter import ErrorReporter

logger = logging.getLogger(__name__)


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _format_context(exc: BaseException) -> str:
    return "".join(traceback.format_exception(exc))


class StartupScheduler:
    """Runs registered InitTasks in dependency order.

    Resolution is a fixed-point loop: each pass runs every pending task whose
    dependencies are settled, until everything is settled or a pass makes no
    progress.  A task that keeps failing is retried with backoff, then handed
    to its fallback.  Unrecoverable failure of a critical task raises
    ``FatalStartupError``; for a non-critical task it is logged and the task
    counts as settled so dependents still run.

    Args:
        tracker: Optional ProgressTracker notified of every attempt.
        reporter: Optional ErrorReporter notified of every failed attempt
            and fallback failure.
        backoff: Retry delay policy (default from settings).
        concurrent: Run the eligible tasks of a pass together (default from
            settings).
        sleep: Awaitable sleep used between retries.
    """

    def __init__(
        self,
        *,
        tracker: ProgressTracker | None = None,
        reporter: ErrorReporter | None = None,
        backoff: Backoff | None = None,
        concurrent: bool | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._tracker = tracker
        self._reporter = reporter
        self._backoff = backoff or Backoff.from_settings()
        self._concurrent = settings.startup_concurrent if concurrent is None else concurrent
        self._sleep = sleep
        self._tasks: dict[str, InitTask] = {}
        self._completed: set[str] = set()
        self._completion_order: list[str] = []
        self._recovered: list[str] = []
        self._tolerated: list[str] = []
        self._running = False

    @property
    def concurrent(self) -> bool:
        return self._concurrent

    @property
    def tracker(self) -> ProgressTracker | None:
        return self._tracker

    @property
    def reporter(self) -> ErrorReporter | None:
        return self._reporter

    # -- Registration ----------------------------------------------------------

    def add_task(self, task: InitTask) -> None:
        """Register a task. Raises DuplicateTaskError if the name is taken."""
        if self._running:
            msg = f"Cannot add task '{task.name}' while startup is running"
            raise RuntimeError(msg)
        if task.name in self._tasks:
            msg = f"Task '{task.name}' is already registered"
            raise DuplicateTaskError(msg)
        self._tasks[task.name] = task
        if self._tracker is not None and not self._tracker.has_step(task.name):
            self._tracker.add_step(task.name, task.description)
        logger.debug(
            "Registered task %s (deps=%s, critical=%s, max_retries=%d)",
            task.name,
            list(task.dependencies),
            task.is_critical,
            task.max_retries,
        )

    # -- Queries ---------------------------------------------------------------

    @property
    def tasks(self) -> list[InitTask]:
        return list(self._tasks.values())

    @property
    def task_names(self) -> list[str]:
        return list(self._tasks)

    @property
    def completed_tasks(self) -> list[str]:
        """Settled task names in the order they settled."""
        return list(self._completion_order)

    @property
    def pending_tasks(self) -> list[str]:
        return [name for name in self._tasks if name not in self._completed]

    def is_task_completed(self, name: str) -> bool:
        return name in self._completed

    def state_of(self, name: str) -> TaskState:
        """Current lifecycle state of a task. Raises KeyError if unknown."""
        return self._tasks[name].state

    def plan(self) -> list[str]:
        """Topological order of the registered tasks (Kahn's algorithm).

        Diagnostic only — ``execute()`` does not use it.  Raises ValueError
        naming the offending tasks when a dependency is missing or the graph
        has a cycle.
        """
        missing = sorted(
            f"{t.name} -> {dep}"
            for t in self._tasks.values()
            for dep in set(t.dependencies)
            if dep not in self._tasks
        )
        if missing:
            msg = f"Unregistered dependencies: {', '.join(missing)}"
            raise ValueError(msg)

        in_degree = {name: len(set(t.dependencies)) for name, t in self._tasks.items()}
        dependents: dict[str, list[str]] = {name: [] for name in self._tasks}
        for t in self._tasks.values():
            for dep in set(t.dependencies):
                dependents[dep].append(t.name)

        ready = deque(name for name, degree in in_degree.items() if degree == 0)
        order: list[str] = []
        while ready:
            name = ready.popleft()
            order.append(name)
            for child in dependents[name]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    ready.append(child)

        if len(order) != len(self._tasks):
            cyclic = [name for name in self._tasks if name not in order]
            msg = f"Dependency cycle among: {', '.join(cyclic)}"
            raise ValueError(msg)
        return order

    # -- Execution -------------------------------------------------------------

    async def execute(self) -> StartupResult:
        """Run every registered task, respecting dependencies.

        Returns a StartupResult once all tasks are settled or resolution
        stalls.  Raises FatalStartupError when a critical task cannot be
        recovered; tasks not yet run at that point never run.  Raises
        RuntimeError if called while a run is already in progress.
        """
        if self._running:
            msg = "Startup is already running"
            raise RuntimeError(msg)
        logger.info(
            "Starting initialization of %d task(s) (%s)",
            len(self._tasks),
            "concurrent" if self._concurrent else "sequential",
        )
        self._running = True
        stalled = False
        try:
            while len(self._completed) < len(self._tasks):
                before = len(self._completed)
                await self._run_pass()
                if len(self._completed) > before:
                    continue

                logger.warning("No progress made in initialization - possible circular dependency")
                await self._run_batch(
                    [t for t in self._pending() if not t.dependencies],
                )
                if len(self._completed) == before:
                    stalled = True
                    logger.error(
                        "Unable to make progress in initialization; unresolved task(s): %s",
                        ", ".join(self._describe_unresolved()),
                    )
                    break
        finally:
            self._running = False

        logger.info(
            "Initialization finished: %d/%d task(s) completed",
            len(self._completed),
            len(self._tasks),
        )
        return StartupResult(
            completed=tuple(self._completion_order),
            recovered=tuple(self._recovered),
            tolerated=tuple(self._tolerated),
            unresolved=tuple(self.pending_tasks),
            stalled=stalled,
        )

    def _pending(self) -> list[InitTask]:
        return [t for t in self._tasks.values() if t.name not in self._completed]

    def _describe_unresolved(self) -> list[str]:
        parts = []
        for task in self._pending():
            waiting = [dep for dep in task.dependencies if dep not in self._completed]
            unknown = [dep for dep in waiting if dep not in self._tasks]
            label = f"{task.name} (waiting on {', '.join(waiting)}"
            if unknown:
                label += f"; unregistered: {', '.join(unknown)}"
            parts.append(label + ")")
        return parts

    async def _run_pass(self) -> None:
        if self._concurrent:
            await self._run_batch([t for t in self._pending() if t.is_ready(self._completed)])
            return
        # Sequential: a task settled earlier in the pass can unblock a later one.
        for task in self._pending():
            if task.is_ready(self._completed):
                await self._run_task(task)

    async def _run_batch(self, batch: list[InitTask]) -> None:
        if not batch:
            return
        if not self._concurrent or len(batch) == 1:
            for task in batch:
                await self._run_task(task)
            return

        try:
            async with asyncio.TaskGroup() as group:
                for task in batch:
                    group.create_task(self._run_task(task), name=f"init:{task.name}")
        except BaseExceptionGroup as eg:
            fatal = eg.subgroup(FatalStartupError)
            if fatal is None:
                raise
            leaf = _first_leaf(fatal)
            raise leaf from leaf.__cause__

    async def _run_task(self, task: InitTask) -> None:
        """Drive one task through retries, fallback and the criticality policy."""
        error: Exception | None = None
        for attempt in range(1, task.max_attempts + 1):
            task.state = TaskState.RUNNING
            if self._tracker is not None:
                self._tracker.start_step(task.name)
            logger.debug("Initializing: %s (attempt %d/%d)", task.name, attempt, task.max_attempts)
            try:
                await task.initializer()
            except Exception as exc:
                error = exc
                if self._tracker is not None:
                    self._tracker.fail_step(task.name, _describe(exc))
                self._report(task, exc)
            else:
                self._mark_completed(task, TaskState.COMPLETED)
                logger.info("Completed initialization: %s", task.name)
                return

            if attempt < task.max_attempts:
                delay = self._backoff.delay(attempt)
                task.state = TaskState.RETRY_WAIT
                logger.warning(
                    "Failed to initialize %s (attempt %d): %s; retrying in %.1fs",
                    task.name,
                    attempt,
                    _describe(error),
                    delay,
                )
                await self._sleep(delay)

        logger.error(
            "Failed to initialize %s after %d attempt(s): %s",
            task.name,
            task.max_attempts,
            _describe(error),
        )

        if task.fallback is not None:
            task.state = TaskState.FALLBACK_RUNNING
            logger.info("Attempting fallback for %s", task.name)
            try:
                await task.fallback()
            except Exception as exc:
                logger.error("Fallback failed for %s: %s", task.name, _describe(exc))
                self._report(task, exc, prefix="Fallback failed: ")
                error = exc
            else:
                self._mark_completed(task, TaskState.COMPLETED)
                self._recovered.append(task.name)
                logger.info("Fallback completed for %s", task.name)
                return

        if task.is_critical:
            task.state = TaskState.ABORTED
            logger.error("Critical task %s failed; aborting startup", task.name)
            msg = f"Critical task '{task.name}' failed: {_describe(error)}"
            raise FatalStartupError(task.name, msg) from error

        logger.warning("Non-critical task %s failed, continuing with other tasks", task.name)
        self._mark_completed(task, TaskState.TOLERATED_FAILURE)
        self._tolerated.append(task.name)

    def _mark_completed(self, task: InitTask, state: TaskState) -> None:
        task.state = state
        task.completed = True
        self._completed.add(task.name)
        self._completion_order.append(task.name)
        if state is TaskState.COMPLETED and self._tracker is not None:
            self._tracker.complete_step(task.name)

    def _report(self, task: InitTask, exc: BaseException, *, prefix: str = "") -> None:
        if self._reporter is None:
            return
        self._reporter.report_error(
            task.name,
            prefix + _describe(exc),
            is_critical=task.is_critical,
            context=_format_context(exc),
        )


def _first_leaf(group: BaseExceptionGroup) -> BaseException:
    exc: BaseException = group
    while isinstance(exc, BaseExceptionGroup):
        exc = exc.exceptions[0]
    return exc
