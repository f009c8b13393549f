"""Host loop — asyncio-based periodic tick.

Responsibilities:
- Advance the simulated world (movement, timed despawns) by monotonic dt
- Tick the siege orchestrator with wall-clock time

Siege timers are wall-clock based, so a stalled loop catches up on the
next tick instead of drifting.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from citysiege.engine.orchestrator import SiegeOrchestrator
    from citysiege.loaders.config_loader import SiegeConfig

log = logging.getLogger(__name__)


class GameLoop:
    """The central host tick loop.

    Args:
        orchestrator: Owner of all siege events.
        config: Supplies the tick interval.
        simulate: Optional ``dt -> None`` callback advancing the host world.
        clock: Wall-clock source handed to the orchestrator.
    """

    def __init__(
        self,
        orchestrator: SiegeOrchestrator,
        config: SiegeConfig | None = None,
        simulate: Callable[[float], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._orchestrator = orchestrator
        self._simulate = simulate
        self._clock = clock
        self._running = False
        self._step_interval = (config.tick_interval_ms / 1000.0) if config else 1.0

        # --- Monitoring counters ---
        self.tick_count: int = 0
        self.started_at: float = 0.0
        self.last_tick_dt: float = 0.0
        self.last_tick_duration_ms: float = 0.0
        self.avg_tick_duration_ms: float = 0.0
        self._tick_duration_sum: float = 0.0

    async def run(self) -> None:
        """Start the loop. Runs until stop() is called."""
        self._running = True
        self.started_at = time.monotonic()
        last = self.started_at
        while self._running:
            now = time.monotonic()
            dt = now - last
            last = now

            t0 = time.monotonic()
            try:
                self._step(dt)
            except Exception:
                log.exception("Tick %d failed", self.tick_count)
            elapsed_ms = (time.monotonic() - t0) * 1000

            self.tick_count += 1
            self.last_tick_dt = dt
            self.last_tick_duration_ms = elapsed_ms
            self._tick_duration_sum += elapsed_ms
            self.avg_tick_duration_ms = self._tick_duration_sum / self.tick_count

            await asyncio.sleep(self._step_interval)

    @property
    def uptime_seconds(self) -> float:
        """Seconds since the loop started."""
        if self.started_at == 0.0:
            return 0.0
        return time.monotonic() - self.started_at

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Signal the loop to stop."""
        self._running = False

    def _step(self, dt: float) -> None:
        """One host tick."""
        # 1. Move the world forward
        if self._simulate is not None:
            self._simulate(dt)

        # 2. Sieges: narrative, combat, win checks, then the start check
        self._orchestrator.tick(self._clock())
