"""City model — a fixed siege location.

Cities are static at runtime; a configuration reload replaces the whole
list but never mutates a city that an active event references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from citysiege.models.geometry import Point
from citysiege.models.path import WaypointPath
from citysiege.util.constants import FACTION_TEMPLATE_ALLIANCE, FACTION_TEMPLATE_HORDE


class Faction(Enum):
    ALLIANCE = "alliance"
    HORDE = "horde"

    @property
    def opponent(self) -> Faction:
        return Faction.HORDE if self is Faction.ALLIANCE else Faction.ALLIANCE

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def faction_template(self) -> int:
        """Hostile-to-the-other-side faction template for this faction's units."""
        return FACTION_TEMPLATE_ALLIANCE if self is Faction.ALLIANCE else FACTION_TEMPLATE_HORDE

    @classmethod
    def parse(cls, text: str) -> Faction | None:
        try:
            return cls(text.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class City:
    """A siegeable location.

    Attributes:
        name: Display name, also the configuration key prefix.
        faction: Faction that owns (defends) the city.
        map_id: Region the city lives in.
        center: Audience and reward scoping point.
        spawn: Rally point where attackers form up.
        leader: Objective point where the city leader stands.
        leader_template: Template id of the objective actor.
        waypoints: Authored path from spawn to leader, possibly empty.
        enabled: Whether the city may be sieged.
    """

    name: str
    faction: Faction
    map_id: int
    center: Point
    spawn: Point
    leader: Point
    leader_template: int
    waypoints: tuple[Point, ...] = field(default_factory=tuple)
    enabled: bool = True

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def attacking_faction(self) -> Faction:
        return self.faction.opponent

    @property
    def path(self) -> WaypointPath:
        return WaypointPath(rally=self.spawn, objective=self.leader, waypoints=self.waypoints)
