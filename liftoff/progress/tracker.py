"""ProgressTracker — per-step lifecycle records and live progress feeds."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from liftoff.progress.feed import Feed

logger = logging.getLogger(__name__)

STATUS_STARTING = "Starting initialization..."
STATUS_COMPLETE = "Initialization complete!"


class UnknownStepError(KeyError):
    """Raised when a step name was never registered with the tracker."""


@dataclass
class ExecutionRecord:
    """Lifecycle record for one initialization step.

    Attributes:
        name: Step name (matches the task name).
        description: Human-readable text shown in status lines.
        completed: Whether the step has finished successfully.
        started_at: When the most recent attempt started.
        ended_at: When the most recent attempt finished (either way).
        error_message: The last failure message, if any.
        attempts: Number of times the step has been started.
    """

    name: str
    description: str
    completed: bool = False
    started_at: datetime | None = None
    ended_at: datetime | None = None
    error_message: str | None = None
    attempts: int = 0

    @property
    def duration(self) -> timedelta | None:
        if self.started_at is None or self.ended_at is None:
            return None
        return self.ended_at - self.started_at


class ProgressTracker:
    """Tracks initialization steps and publishes progress as it happens.

    Three feeds are exposed — ``step_feed`` (an ``ExecutionRecord`` snapshot
    per completion or failure), ``progress_feed`` (the completed fraction)
    and ``status_feed`` (human-readable status lines).  All are broadcast
    without replay.
    """

    def __init__(self) -> None:
        self._steps: dict[str, ExecutionRecord] = {}
        self._completed_steps = 0
        self._completion_order: list[str] = []
        self.step_feed: Feed[ExecutionRecord] = Feed("steps")
        self.progress_feed: Feed[float] = Feed("progress")
        self.status_feed: Feed[str] = Feed("status")

    # -- Registration ----------------------------------------------------------

    def add_step(self, name: str, description: str) -> ExecutionRecord:
        """Register a new step. Raises ValueError on duplicate name."""
        if name in self._steps:
            msg = f"Step '{name}' is already registered"
            raise ValueError(msg)
        step = ExecutionRecord(name=name, description=description)
        self._steps[name] = step
        return step

    def has_step(self, name: str) -> bool:
        return name in self._steps

    def get_step(self, name: str) -> ExecutionRecord:
        """Look up a step by name. Raises UnknownStepError if missing."""
        try:
            return self._steps[name]
        except KeyError:
            msg = f"Step not found: {name}"
            raise UnknownStepError(msg) from None

    # -- Transitions -----------------------------------------------------------

    def start_step(self, name: str) -> None:
        step = self.get_step(name)
        step.started_at = datetime.now(UTC)
        step.ended_at = None
        step.attempts += 1
        self._update_status(f"Initializing: {step.description}")
        logger.info("Started initialization step: %s (attempt %d)", name, step.attempts)

    def complete_step(self, name: str) -> None:
        step = self.get_step(name)
        if step.completed:
            logger.debug("Step %s already completed; ignoring", name)
            return
        step.completed = True
        step.ended_at = datetime.now(UTC)
        self._completed_steps += 1
        self._completion_order.append(name)

        self.step_feed.publish(dataclasses.replace(step))
        self.progress_feed.publish(self.get_progress())
        self._update_status(f"Completed: {step.description}")
        logger.info(
            "Completed initialization step: %s (%d/%d)",
            name,
            self._completed_steps,
            self.total_steps,
        )

    def fail_step(self, name: str, error_message: str) -> None:
        """Record a failed attempt. Does not count toward progress."""
        step = self.get_step(name)
        step.ended_at = datetime.now(UTC)
        step.error_message = error_message

        self.step_feed.publish(dataclasses.replace(step))
        self._update_status(f"Failed: {step.description} - {error_message}")
        logger.error("Failed initialization step: %s - %s", name, error_message)

    def _update_status(self, status: str) -> None:
        self.status_feed.publish(status)

    # -- Queries ---------------------------------------------------------------

    def get_progress(self) -> float:
        """Completed fraction in ``[0.0, 1.0]``; ``0.0`` with no steps."""
        if not self._steps:
            return 0.0
        return self._completed_steps / len(self._steps)

    def get_status(self) -> str:
        if self._completed_steps == 0:
            return STATUS_STARTING
        if self._completed_steps == len(self._steps):
            return STATUS_COMPLETE
        return f"Initializing ({self._completed_steps}/{len(self._steps)})..."

    @property
    def steps(self) -> tuple[ExecutionRecord, ...]:
        """Snapshot of all step records in registration order."""
        return tuple(dataclasses.replace(s) for s in self._steps.values())

    @property
    def total_steps(self) -> int:
        return len(self._steps)

    @property
    def completed_steps(self) -> int:
        return self._completed_steps

    @property
    def completed_step_names(self) -> list[str]:
        """Names of completed steps, ordered by completion time."""
        return list(self._completion_order)

    @property
    def incomplete_step_names(self) -> list[str]:
        return [s.name for s in self._steps.values() if not s.completed]

    # -- Lifecycle -------------------------------------------------------------

    def reset(self) -> None:
        """Forget every step and zero the counters. Feeds stay open."""
        self._steps.clear()
        self._completed_steps = 0
        self._completion_order.clear()

    def dispose(self) -> None:
        """Close all feeds. No further transitions may be emitted."""
        self.step_feed.close()
        self.progress_feed.close()
        self.status_feed.close()
