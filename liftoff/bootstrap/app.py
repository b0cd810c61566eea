"""Bootstrapper — composes the startup graph and runs it."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from liftoff.bootstrap.graph import DEFAULT_GRAPH
from liftoff.progress.tracker import ProgressTracker
from liftoff.reporting.reporter import ErrorReporter
from liftoff.startup.errors import FatalStartupError
from liftoff.startup.models import InitTask
from liftoff.startup.scheduler import StartupScheduler

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Mapping

    from liftoff.bootstrap.graph import SubsystemSpec
    from liftoff.startup.models import StartupResult

    Initializer = Callable[[], Awaitable[None]]

logger = logging.getLogger(__name__)


def with_tracking(name: str, initializer: Initializer) -> Initializer:
    """Wrap an initializer with start/finish logging and timing.

    Failures are logged and re-raised so the scheduler can retry them.
    """

    async def _tracked() -> None:
        logger.info("Starting initialization of %s", name)
        started = time.monotonic()
        try:
            await initializer()
        except Exception as exc:
            logger.warning(
                "Initialization of %s raised after %.2fs: %s",
                name,
                time.monotonic() - started,
                exc,
            )
            raise
        logger.info("Completed initialization of %s in %.2fs", name, time.monotonic() - started)

    return _tracked


def make_fallback(name: str, message: str) -> Initializer:
    """Build a fallback that degrades the subsystem and logs why."""

    async def _fallback() -> None:
        logger.warning("%s: %s", name, message)

    return _fallback


def _make_noop(name: str) -> Initializer:
    async def _noop() -> None:
        logger.debug("No initializer registered for %s; nothing to do", name)

    return _noop


def _observers_of(
    scheduler: StartupScheduler,
    tracker: ProgressTracker | None,
    reporter: ErrorReporter | None,
) -> tuple[ProgressTracker, ErrorReporter]:
    """Return the scheduler's tracker and reporter, rejecting mismatches."""
    if scheduler.tracker is None or scheduler.reporter is None:
        msg = "A supplied scheduler must have both a tracker and a reporter attached"
        raise ValueError(msg)
    if tracker is not None and tracker is not scheduler.tracker:
        msg = "tracker must be the one attached to the supplied scheduler"
        raise ValueError(msg)
    if reporter is not None and reporter is not scheduler.reporter:
        msg = "reporter must be the one attached to the supplied scheduler"
        raise ValueError(msg)
    return scheduler.tracker, scheduler.reporter


class Bootstrapper:
    """Builds InitTasks from a subsystem graph and executes them once.

    Args:
        initializers: Subsystem name → async initializer.  Subsystems with no
            entry get a no-op initializer.
        graph: The subsystems to bring up (default: the application graph).
        scheduler: Scheduler to register tasks on.  Built from *tracker* and
            *reporter* when omitted.  When given, it must carry its own
            tracker and reporter; those become the Bootstrapper's.
        tracker: ProgressTracker shared with the presentation layer.
        reporter: ErrorReporter shared with the presentation layer.
    """

    def __init__(
        self,
        initializers: Mapping[str, Initializer] | None = None,
        *,
        graph: Iterable[SubsystemSpec] = DEFAULT_GRAPH,
        scheduler: StartupScheduler | None = None,
        tracker: ProgressTracker | None = None,
        reporter: ErrorReporter | None = None,
    ) -> None:
        self._initializers = dict(initializers or {})
        self._graph = tuple(graph)
        if scheduler is None:
            self._tracker = tracker or ProgressTracker()
            self._reporter = reporter or ErrorReporter()
            self._scheduler = StartupScheduler(tracker=self._tracker, reporter=self._reporter)
        else:
            self._tracker, self._reporter = _observers_of(scheduler, tracker, reporter)
            self._scheduler = scheduler
        self._result: StartupResult | None = None
        self._initialized = False

        unknown = sorted(set(self._initializers) - {spec.name for spec in self._graph})
        if unknown:
            logger.warning("Initializers with no matching subsystem: %s", ", ".join(unknown))

        self._compose()

    # -- Accessors -------------------------------------------------------------

    @property
    def tracker(self) -> ProgressTracker:
        return self._tracker

    @property
    def reporter(self) -> ErrorReporter:
        return self._reporter

    @property
    def scheduler(self) -> StartupScheduler:
        return self._scheduler

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def result(self) -> StartupResult | None:
        return self._result

    # -- Lifecycle -------------------------------------------------------------

    def _compose(self) -> None:
        """Register a step and a task for every subsystem in the graph."""
        for spec in self._graph:
            description = spec.description or f"Initializing {spec.name}"
            if not self._tracker.has_step(spec.name):
                self._tracker.add_step(spec.name, description)

            initializer = self._initializers.get(spec.name) or _make_noop(spec.name)
            fallback = None
            if spec.fallback_message is not None:
                fallback = make_fallback(spec.name, spec.fallback_message)

            self._scheduler.add_task(
                InitTask(
                    name=spec.name,
                    initializer=with_tracking(spec.name, initializer),
                    dependencies=spec.dependencies,
                    is_critical=spec.critical,
                    fallback=fallback,
                    max_retries=spec.retries,
                    description=description,
                )
            )
        logger.debug("Composed startup graph with %d subsystem(s)", len(self._graph))

    async def initialize(self) -> StartupResult:
        """Run the startup graph. Subsequent calls return the first result.

        Raises FatalStartupError if a critical subsystem cannot start.
        """
        if self._initialized and self._result is not None:
            return self._result

        logger.info("Starting app initialization...")
        try:
            result = await self._scheduler.execute()
        except FatalStartupError:
            logger.exception("App initialization failed")
            logger.error("%s", self._reporter.generate_summary())
            raise

        self._result = result
        self._initialized = True
        if result.stalled:
            logger.error("App initialization stalled; unresolved: %s", ", ".join(result.unresolved))
        elif result.tolerated:
            logger.warning(
                "App initialization completed with degraded subsystem(s): %s",
                ", ".join(result.tolerated),
            )
        else:
            logger.info("App initialization completed successfully")
        return result
