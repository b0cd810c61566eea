"""ErrorReporter — append-only log of initialization failures."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from liftoff.config import settings

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

NO_ERRORS_SUMMARY = "No initialization errors occurred."


@dataclass(frozen=True)
class ErrorRecord:
    """A single reported initialization failure.

    Attributes:
        task_name: The task that failed.
        message: The error message.
        is_critical: Whether the task was marked critical.
        timestamp: When the error was reported (UTC).
        context: Optional formatted traceback or other diagnostic text.
    """

    task_name: str
    message: str
    is_critical: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    context: str | None = None

    @property
    def severity(self) -> str:
        return "CRITICAL" if self.is_critical else "NON-CRITICAL"

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskName": self.task_name,
            "errorMessage": self.message,
            "timestamp": self.timestamp.isoformat(),
            "isCritical": self.is_critical,
            "stackTrace": self.context,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def _log_critical(record: ErrorRecord) -> None:
    """Default critical hook; a crash-reporting integration can replace it."""
    logger.critical("CRITICAL INITIALIZATION ERROR: %s - %s", record.task_name, record.message)


class ErrorReporter:
    """Collects initialization errors for one or more startup runs.

    Records are never mutated or removed individually; ``clear()`` wipes the
    whole log between runs.  Accessors return tuples so callers cannot alter
    the log.

    Args:
        enabled: Initial reporting toggle (default from settings).
        critical_handler: Called with each critical ``ErrorRecord`` after it
            is logged.  Defaults to a CRITICAL log line.
    """

    def __init__(
        self,
        *,
        enabled: bool | None = None,
        critical_handler: Callable[[ErrorRecord], None] | None = None,
    ) -> None:
        self._errors: list[ErrorRecord] = []
        self._enabled = settings.error_reporting_enabled if enabled is None else enabled
        self._critical_handler = critical_handler or _log_critical

    # -- Reporting -------------------------------------------------------------

    def report_error(
        self,
        task_name: str,
        message: str,
        *,
        is_critical: bool,
        context: str | None = None,
    ) -> ErrorRecord | None:
        """Append an error record. Returns None when reporting is disabled."""
        if not self._enabled:
            return None

        record = ErrorRecord(
            task_name=task_name,
            message=message,
            is_critical=is_critical,
            context=context,
        )
        self._errors.append(record)
        logger.error("Initialization Error [%s]: %s - %s", record.severity, task_name, message)
        if context:
            logger.debug("Context for %s:\n%s", task_name, context)

        if is_critical:
            try:
                self._critical_handler(record)
            except Exception:
                logger.exception("Critical error handler failed for %s", task_name)
        return record

    # -- Accessors -------------------------------------------------------------

    def get_errors(self) -> tuple[ErrorRecord, ...]:
        return tuple(self._errors)

    def get_critical_errors(self) -> tuple[ErrorRecord, ...]:
        return tuple(e for e in self._errors if e.is_critical)

    def get_non_critical_errors(self) -> tuple[ErrorRecord, ...]:
        return tuple(e for e in self._errors if not e.is_critical)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def has_critical_errors(self) -> bool:
        return any(e.is_critical for e in self._errors)

    def generate_summary(self) -> str:
        """Human-readable summary, critical errors listed first."""
        if not self._errors:
            return NO_ERRORS_SUMMARY

        critical = self.get_critical_errors()
        non_critical = self.get_non_critical_errors()

        lines = [
            "Initialization Error Summary:",
            f"Total Errors: {len(self._errors)}",
            f"Critical Errors: {len(critical)}",
            f"Non-Critical Errors: {len(non_critical)}",
            "",
        ]
        for title, group in (("Critical Errors:", critical), ("Non-Critical Errors:", non_critical)):
            if not group:
                continue
            lines.append(title)
            lines.extend(f"  - {e.task_name}: {e.message}" for e in group)
            lines.append("")
        return "\n".join(lines) + "\n"

    # -- Toggles ---------------------------------------------------------------

    @property
    def reporting_enabled(self) -> bool:
        return self._enabled

    def set_reporting_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        logger.debug("Error reporting %s", "enabled" if enabled else "disabled")

    def clear(self) -> None:
        """Drop every recorded error."""
        self._errors.clear()
