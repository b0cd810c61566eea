"""Initialization error reporting."""

from liftoff.reporting.reporter import ErrorRecord, ErrorReporter

__all__ = ["ErrorRecord", "ErrorReporter"]
