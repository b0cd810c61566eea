"""Tests for the liftoff entry point."""

from unittest.mock import AsyncMock

import pytest

from liftoff.bootstrap.app import Bootstrapper
from liftoff.bootstrap.graph import THEME, SubsystemSpec
from liftoff.main import run


async def test_run_default_graph_succeeds() -> None:
    assert await run() == 0


async def test_run_returns_one_on_fatal_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def _failing_bootstrapper() -> Bootstrapper:
        return Bootstrapper(
            {THEME: AsyncMock(side_effect=RuntimeError("no theme"))},
            graph=(SubsystemSpec(name=THEME, critical=True, max_retries=0),),
        )

    monkeypatch.setattr("liftoff.main.Bootstrapper", _failing_bootstrapper)

    assert await run() == 1


async def test_run_returns_one_on_stall(monkeypatch: pytest.MonkeyPatch) -> None:
    def _cyclic_bootstrapper() -> Bootstrapper:
        return Bootstrapper(
            graph=(
                SubsystemSpec(name="A", dependencies=("B",)),
                SubsystemSpec(name="B", dependencies=("A",)),
            ),
        )

    monkeypatch.setattr("liftoff.main.Bootstrapper", _cyclic_bootstrapper)

    assert await run() == 1
