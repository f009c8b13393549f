"""Actor categories and path progress.

Progress is a tagged value ``{side, index}``: attackers count up from 0
to ``len(waypoints)`` (the objective), defenders count down from
``len(waypoints)`` to 0 (the rally point).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Tier(Enum):
    """Unit category with its own level, scale and respawn delay."""

    LEADER = "leader"
    MINI_BOSS = "mini_boss"
    ELITE = "elite"
    MINION = "minion"
    DEFENDER = "defender"
    BOT = "bot"

    @property
    def speaks(self) -> bool:
        """Whether actors of this tier deliver dialogue and taunts."""
        return self in (Tier.LEADER, Tier.MINI_BOSS)

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class Side(Enum):
    ATTACKER = "attacker"
    DEFENDER = "defender"


class ReactState(Enum):
    PASSIVE = "passive"
    DEFENSIVE = "defensive"
    AGGRESSIVE = "aggressive"


@dataclass(frozen=True)
class Progress:
    """Where an actor is on its path.

    Attributes:
        side: Direction of travel.
        index: Attackers: next waypoint index (``len`` = objective).
            Defenders: one past the next waypoint index (0 = rally).
    """

    side: Side
    index: int

    @classmethod
    def start(cls, side: Side, waypoint_count: int) -> Progress:
        """Starting progress for a freshly spawned actor."""
        return cls(side, 0 if side is Side.ATTACKER else waypoint_count)

    def is_terminal(self, waypoint_count: int) -> bool:
        if self.side is Side.ATTACKER:
            return self.index >= waypoint_count
        return self.index <= 0

    def advanced(self, waypoint_count: int) -> Progress:
        """One step further along the path, clamped at the terminal value."""
        if self.is_terminal(waypoint_count):
            return self
        step = 1 if self.side is Side.ATTACKER else -1
        return Progress(self.side, self.index + step)


@dataclass
class ActorEntry:
    """Directory record for one live actor identity."""

    identity: int
    tier: Tier
    progress: Progress
    is_bot: bool = False

    @property
    def side(self) -> Side:
        return self.progress.side

    @property
    def is_defender(self) -> bool:
        return self.progress.side is Side.DEFENDER
