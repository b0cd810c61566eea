"""Exceptions raised by the startup scheduler."""


class DuplicateTaskError(ValueError):
    """Raised when a task name is registered twice."""


class FatalStartupError(RuntimeError):
    """Raised when a critical task fails and its fallback cannot recover it.

    The triggering exception is chained as ``__cause__``.
    """

    def __init__(self, task_name: str, message: str) -> None:
        super().__init__(message)
        self.task_name = task_name
