"""Path progression driver — issues per-tick movement orders.

For every live actor that is neither fighting nor already moving, the
driver resolves the target from the actor directory, advances the
actor's progress on arrival and sends the next move order straight away.
Native actors and bots go through the same code path; only the
:class:`~citysiege.world.interfaces.Mover` behind them differs.
"""

from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING, Mapping

from citysiege.util.constants import ARRIVAL_THRESHOLD, MOVE_JITTER
from citysiege.util.errors import NotFound

if TYPE_CHECKING:
    from citysiege.models.geometry import Point
    from citysiege.models.siege import SiegeEvent
    from citysiege.world.interfaces import ActorHandle, Mover

log = logging.getLogger(__name__)


class NativeMover:
    """Adapts a native actor handle to the mover interface."""

    def __init__(self, handle: ActorHandle) -> None:
        self.handle = handle

    @property
    def position(self) -> Point:
        return self.handle.position

    @property
    def is_alive(self) -> bool:
        return self.handle.is_alive

    @property
    def in_combat(self) -> bool:
        return self.handle.in_combat

    @property
    def is_moving(self) -> bool:
        return self.handle.is_moving

    def issue_move_order(self, point: Point) -> None:
        self.handle.move_to(point, walk=False)


class PathProgressionDriver:
    """Moves actors along their waypoint path, one order at a time."""

    def __init__(self, rng: random.Random | None = None,
                 arrival_threshold: float = ARRIVAL_THRESHOLD,
                 jitter: float = MOVE_JITTER) -> None:
        self._rng = rng or random.Random()
        self.arrival_threshold = arrival_threshold
        self.jitter = jitter

    def jittered(self, target: Point) -> Point:
        """A point within the jitter radius of *target* in the XY plane.

        The authored Z is kept; it is never resampled from terrain.
        """
        if self.jitter <= 0:
            return target
        angle = self._rng.uniform(0, 2 * math.pi)
        distance = self._rng.uniform(0, self.jitter)
        return target.on_ring(distance, angle)

    def send_order(self, event: SiegeEvent, identity: int, mover: Mover) -> Point:
        """Order *mover* towards its current target regardless of state."""
        entry = event.directory.get(identity)
        target = event.city.path.target_for(entry.progress)
        destination = self.jittered(target)
        mover.issue_move_order(destination)
        return destination

    def drive(self, event: SiegeEvent, identity: int, mover: Mover) -> bool:
        """Run one progression step for a single actor.

        Returns:
            True if a move order was issued.
        """
        if not mover.is_alive or mover.in_combat or mover.is_moving:
            return False
        entry = event.directory.find(identity)
        if entry is None:
            return False

        path = event.city.path
        target = path.target_for(entry.progress)
        if mover.position.distance_to(target) > self.arrival_threshold:
            mover.issue_move_order(self.jittered(target))
            return True

        if entry.progress.is_terminal(len(path)):
            # Arrived at the final anchor; hold position.
            return False

        progress = event.directory.advance(identity)
        log.debug("[PATH] %s actor %d reached %s, next index %d", event.city.name,
                  identity, target, progress.index)
        mover.issue_move_order(self.jittered(path.target_for(progress)))
        return True

    def step(self, event: SiegeEvent, movers: Mapping[int, Mover]) -> int:
        """Drive every actor in *movers*; returns the number of orders issued."""
        issued = 0
        for identity, mover in movers.items():
            try:
                if self.drive(event, identity, mover):
                    issued += 1
            except NotFound:
                log.debug("[PATH] Actor %d left the directory mid-tick", identity)
        return issued

    def issue_initial_orders(self, event: SiegeEvent, movers: Mapping[int, Mover]) -> int:
        """First order for every live actor when combat starts."""
        issued = 0
        for identity, mover in movers.items():
            if not mover.is_alive or identity not in event.directory:
                continue
            self.send_order(event, identity, mover)
            issued += 1
        return issued
