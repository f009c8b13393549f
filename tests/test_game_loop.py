"""Tests for the asyncio host loop."""

from __future__ import annotations

import asyncio

import pytest

from citysiege.engine.game_loop import GameLoop
from citysiege.loaders.config_loader import SiegeConfig


class _RecordingOrchestrator:
    def __init__(self, fail: bool = False) -> None:
        self.ticks: list[float] = []
        self.fail = fail

    def tick(self, now: float | None = None) -> None:
        self.ticks.append(now)
        if self.fail:
            raise RuntimeError("tick exploded")


def _make_loop(orchestrator, simulate=None) -> GameLoop:
    return GameLoop(orchestrator, SiegeConfig(tick_interval_ms=5), simulate=simulate,
                    clock=lambda: 42.0)


async def _run_briefly(loop: GameLoop, ticks: int = 3) -> None:
    task = asyncio.create_task(loop.run())
    while loop.tick_count < ticks:
        await asyncio.sleep(0.005)
    loop.stop()
    await asyncio.wait_for(task, timeout=1.0)


class TestGameLoop:
    @pytest.mark.asyncio
    async def test_ticks_orchestrator_with_clock(self):
        orchestrator = _RecordingOrchestrator()
        simulated: list[float] = []
        loop = _make_loop(orchestrator, simulate=simulated.append)

        await _run_briefly(loop)

        assert not loop.is_running
        assert loop.tick_count >= 3
        assert orchestrator.ticks[:3] == [42.0, 42.0, 42.0]
        assert len(simulated) == loop.tick_count
        assert all(dt >= 0.0 for dt in simulated)
        assert loop.uptime_seconds > 0.0

    @pytest.mark.asyncio
    async def test_failing_tick_is_logged_not_raised(self, caplog):
        loop = _make_loop(_RecordingOrchestrator(fail=True))

        await _run_briefly(loop, ticks=2)

        assert loop.tick_count >= 2
        assert "failed" in caplog.text

    def test_defaults_without_config(self):
        loop = GameLoop(_RecordingOrchestrator())
        assert loop.uptime_seconds == 0.0
        assert not loop.is_running
        assert loop.tick_count == 0

    def test_step_runs_simulation_before_siege_tick(self):
        order: list[str] = []

        class _Orchestrator:
            def tick(self, now=None):
                order.append("tick")

        loop = GameLoop(_Orchestrator(), simulate=lambda dt: order.append("simulate"))
        loop._step(1.0)
        assert order == ["simulate", "tick"]
