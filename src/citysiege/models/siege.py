"""Siege event model — data container for one active siege.

The SiegeEvent holds all mutable state of a running siege.
Business logic is in engine/siege_machine.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from citysiege.models.actor import Side, Tier
from citysiege.models.city import City, Faction
from citysiege.models.directory import ActorDirectory
from citysiege.models.geometry import Point
from citysiege.util.errors import StateViolation


class SiegePhase(Enum):
    NARRATIVE = "narrative"
    COMBAT = "combat"
    ENDED = "ended"


_PHASE_ORDER = [SiegePhase.NARRATIVE, SiegePhase.COMBAT, SiegePhase.ENDED]


class Outcome(Enum):
    ATTACKERS = "attackers"
    DEFENDERS = "defenders"


@dataclass
class DeathRecord:
    """An actor waiting in the respawn queue."""

    identity: int
    tier: Tier
    side: Side
    died_at: float
    is_bot: bool = False
    template_id: int = 0


@dataclass
class BotReturnState:
    """Where a recruited bot goes back to when the siege ends."""

    identity: int
    map_id: int
    position: Point
    orientation: float
    was_pvp: bool
    side: Side
    restore_strategy: str = "+rpg"


@dataclass
class SiegeEvent:
    """Mutable state container for an active siege.

    Attributes:
        event_id: Unique event ID.
        city: The besieged city.
        started_at: Wall-clock creation time.
        ends_at: Wall-clock time limit; reaching it means defender victory.
        narrative_seconds: Length of the narrative countdown.

        phase: Current lifecycle phase; only ever moves forward.
        objective_id: Identity of the objective actor, None if unresolved.
        objective_name: Cached display name of the objective actor.
        objective_killed: Set when the event ended with the objective dead.

        script: Dialogue lines chosen for the narrative phase.
        script_cursor: Next line to speak.
        milestones: Narrative percent thresholds already announced.
        last_yell_at: Time of the last dialogue line or taunt.
        last_status_at: Time of the last combat status broadcast.

        directory: Path progress of every live actor.
        death_queue: Dead actors awaiting respawn, one entry per identity.
        bot_returns: Saved state for every recruited bot.

        weather_snapshot: Weather (type, grade) in effect before the override.
        weather_active: Whether the override is currently applied.

        ended_at: Wall-clock end time.
        outcome: Winning side once ended.
        forced_outcome: Administrative override consumed by the next check.
    """

    event_id: int
    city: City
    started_at: float
    ends_at: float
    narrative_seconds: float

    phase: SiegePhase = SiegePhase.NARRATIVE
    objective_id: int | None = None
    objective_name: str = ""
    objective_killed: bool = False

    script: list[str] = field(default_factory=list)
    script_cursor: int = 0
    milestones: set[int] = field(default_factory=set)
    last_yell_at: float = 0.0
    last_status_at: float = 0.0

    directory: ActorDirectory = field(default_factory=ActorDirectory)
    death_queue: list[DeathRecord] = field(default_factory=list)
    bot_returns: dict[int, BotReturnState] = field(default_factory=dict)

    weather_snapshot: tuple[int, float] | None = None
    weather_active: bool = False

    ended_at: float | None = None
    outcome: Outcome | None = None
    forced_outcome: Outcome | None = None

    def __post_init__(self) -> None:
        self.directory.waypoint_count = len(self.city.waypoints)

    # -- Phase -----------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.phase is not SiegePhase.ENDED

    @property
    def in_combat(self) -> bool:
        return self.phase is SiegePhase.COMBAT

    def advance_phase(self, new_phase: SiegePhase) -> None:
        """Move to a later phase.

        Raises:
            StateViolation: If *new_phase* is not strictly after the current one.
        """
        if _PHASE_ORDER.index(new_phase) <= _PHASE_ORDER.index(self.phase):
            raise StateViolation(
                f"Siege {self.event_id} cannot go from {self.phase.value} to {new_phase.value}"
            )
        self.phase = new_phase

    # -- Timing ----------------------------------------------------------

    def elapsed(self, now: float) -> float:
        return now - self.started_at

    def remaining(self, now: float) -> float:
        return max(0.0, self.ends_at - now)

    def narrative_remaining(self, now: float) -> float:
        return max(0.0, self.narrative_seconds - self.elapsed(now))

    def is_expired(self, now: float, grace_seconds: float) -> bool:
        """Whether an ended event has outlived its grace window."""
        return self.ended_at is not None and now - self.ended_at >= grace_seconds

    # -- Queries ---------------------------------------------------------

    @property
    def winning_faction(self) -> Faction | None:
        if self.outcome is None:
            return None
        if self.outcome is Outcome.DEFENDERS:
            return self.city.faction
        return self.city.attacking_faction

    def is_queued(self, identity: int) -> bool:
        return any(r.identity == identity for r in self.death_queue)
