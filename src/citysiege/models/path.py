"""Waypoint path between a city's rally point and its objective.

Attackers walk rally → waypoints[0] → ... → objective.  Defenders walk
the same list backwards: objective → waypoints[-1] → ... → rally.
"""

from __future__ import annotations

from dataclasses import dataclass

from citysiege.models.actor import Progress, Side
from citysiege.models.geometry import Point


@dataclass(frozen=True)
class WaypointPath:
    """Read-only ordered path with its two anchors.

    Attributes:
        rally: Where attackers gather and defenders retreat to.
        objective: Where the objective actor stands.
        waypoints: Intermediate points, possibly empty.
    """

    rally: Point
    objective: Point
    waypoints: tuple[Point, ...] = ()

    def __len__(self) -> int:
        return len(self.waypoints)

    def __getitem__(self, index: int) -> Point:
        return self.waypoints[index]

    def anchor_for(self, side: Side) -> Point:
        """Point a side's wave starts from."""
        return self.objective if side is Side.DEFENDER else self.rally

    def target_for(self, progress: Progress) -> Point:
        """Resolve the point an actor with *progress* is heading to."""
        count = len(self.waypoints)
        if progress.side is Side.ATTACKER:
            if progress.index < count:
                return self.waypoints[progress.index]
            return self.objective
        if progress.index > 0:
            return self.waypoints[min(progress.index, count) - 1]
        return self.rally

    def describe_target(self, progress: Progress) -> str:
        """Human-readable name of the current target."""
        count = len(self.waypoints)
        if progress.side is Side.ATTACKER:
            if progress.index < count:
                return f"Waypoint {progress.index + 1}"
            return "Leader Position"
        if progress.index > 0:
            return f"Waypoint {min(progress.index, count)}"
        return "Spawn Point"
