"""Retry delay policy."""

from __future__ import annotations

from dataclasses import dataclass

from liftoff.config import settings

STRATEGIES = ("linear", "exponential")


@dataclass(frozen=True)
class Backoff:
    """Computes the wait before a retry.

    ``linear`` waits ``base * attempt`` seconds, ``exponential`` waits
    ``base * 2 ** (attempt - 1)``; both are capped at ``max_seconds``, so the
    sequence never decreases.

    Attributes:
        strategy: ``"linear"`` or ``"exponential"``.
        base_seconds: Delay unit.
        max_seconds: Upper bound on any single delay.
    """

    strategy: str = "linear"
    base_seconds: float = 1.0
    max_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            msg = f"Unknown backoff strategy: {self.strategy!r}"
            raise ValueError(msg)
        if self.base_seconds < 0 or self.max_seconds < 0:
            msg = "Backoff delays must be non-negative"
            raise ValueError(msg)

    @classmethod
    def from_settings(cls) -> Backoff:
        return cls(
            strategy=settings.startup_backoff_strategy,
            base_seconds=settings.startup_backoff_base_seconds,
            max_seconds=settings.startup_backoff_max_seconds,
        )

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the *attempt*-th failure (1-based)."""
        if attempt < 1:
            return 0.0
        if self.strategy == "exponential":
            raw = self.base_seconds * 2 ** (attempt - 1)
        else:
            raw = self.base_seconds * attempt
        return min(raw, self.max_seconds)
