"""Tests for the retry Backoff policy."""

import pytest

from liftoff.startup.backoff import Backoff


def test_linear_delays() -> None:
    backoff = Backoff(strategy="linear", base_seconds=1.0, max_seconds=30)
    assert [backoff.delay(n) for n in range(1, 5)] == [1.0, 2.0, 3.0, 4.0]


def test_exponential_delays() -> None:
    backoff = Backoff(strategy="exponential", base_seconds=0.5, max_seconds=30)
    assert [backoff.delay(n) for n in range(1, 5)] == [0.5, 1.0, 2.0, 4.0]


def test_delay_capped() -> None:
    backoff = Backoff(strategy="exponential", base_seconds=1.0, max_seconds=5)
    delays = [backoff.delay(n) for n in range(1, 8)]
    assert delays[-1] == 5
    assert delays == sorted(delays)


def test_attempt_zero_has_no_delay() -> None:
    assert Backoff().delay(0) == 0.0


def test_zero_base_never_waits() -> None:
    backoff = Backoff(base_seconds=0)
    assert {backoff.delay(n) for n in range(1, 4)} == {0}


def test_unknown_strategy_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown backoff strategy"):
        Backoff(strategy="fibonacci")


def test_negative_delay_rejected() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        Backoff(base_seconds=-1)


def test_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("liftoff.config.settings.startup_backoff_strategy", "exponential")
    monkeypatch.setattr("liftoff.config.settings.startup_backoff_base_seconds", 2.0)
    monkeypatch.setattr("liftoff.config.settings.startup_backoff_max_seconds", 3.0)

    backoff = Backoff.from_settings()

    assert backoff == Backoff(strategy="exponential", base_seconds=2.0, max_seconds=3.0)
