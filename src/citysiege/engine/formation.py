"""Formation spawner — places a side's wave in rings around its anchor.

Attackers form concentric rings around the rally point: the leader tier
tightest, then mini-bosses, elites and minions widening outward.
Defenders stand in a single ring around the objective.  A failed spawn
is logged and skipped; partial waves are accepted.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from citysiege.models.actor import ReactState, Side, Tier
from citysiege.models.city import Faction
from citysiege.models.geometry import Point
from citysiege.util.constants import (
    DEFENDER_RING_RADIUS,
    ELITE_RING_FACTOR,
    FACTION_TEMPLATE_NEUTRAL,
    FORMATION_BASE_RADIUS,
    GROUND_OFFSET,
    LEADER_RING_RADIUS,
    MINI_BOSS_RING_FACTOR,
)
from citysiege.util.errors import DuplicateActor, InvalidPosition
from citysiege.util.text import split_lines

if TYPE_CHECKING:
    from citysiege.loaders.config_loader import SiegeConfig
    from citysiege.models.city import City
    from citysiege.models.siege import SiegeEvent
    from citysiege.world.interfaces import ActorHandle, Scene

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TierSpec:
    """How one tier of a wave is spawned."""

    tier: Tier
    template_id: int
    count: int
    radius: float
    level: int
    scale: float = 1.0


@dataclass(frozen=True)
class SpawnResult:
    tier: Tier
    position: Point
    identity: int | None = None

    @property
    def spawned(self) -> bool:
        return self.identity is not None


def combat_posture(config: SiegeConfig, city: City, side: Side) -> tuple[int, ReactState]:
    """Faction template and react state an actor takes once combat starts."""
    if side is Side.DEFENDER:
        return city.faction.faction_template, ReactState.AGGRESSIVE
    react = (ReactState.AGGRESSIVE if config.aggro_players and config.aggro_npcs
             else ReactState.DEFENSIVE)
    return city.attacking_faction.faction_template, react


def ground_point(scene: Scene, point: Point) -> Point:
    """Snap *point* to just above the ground, keeping the authored Z on failure."""
    try:
        return point.with_z(scene.ground_height(point.x, point.y, point.z) + GROUND_OFFSET)
    except InvalidPosition as e:
        log.debug("Ground lookup failed, keeping authored height: %s", e)
        return point


class FormationSpawner:
    """Builds wave plans from configuration and spawns them."""

    def __init__(self, config: SiegeConfig, rng: random.Random | None = None) -> None:
        self._config = config
        self._rng = rng or random.Random()

    def reconfigure(self, config: SiegeConfig) -> None:
        self._config = config

    # -- Planning --------------------------------------------------------

    def wave_plan(self, city: City, side: Side) -> list[TierSpec]:
        """Tier specs for one side's wave, highest priority first."""
        cfg = self._config
        if side is Side.DEFENDER:
            if not cfg.defenders_enabled:
                return []
            template = (cfg.alliance_defender if city.faction is Faction.ALLIANCE
                        else cfg.horde_defender)
            return [TierSpec(Tier.DEFENDER, template, cfg.defenders_count,
                             DEFENDER_RING_RADIUS, cfg.level_defender)]

        if city.attacking_faction is Faction.ALLIANCE:
            leaders, mini_boss, elite, minion = (
                cfg.alliance_leaders, cfg.alliance_mini_boss, cfg.alliance_elite, cfg.alliance_minion,
            )
        else:
            leaders, mini_boss, elite, minion = (
                cfg.horde_leaders, cfg.horde_mini_boss, cfg.horde_elite, cfg.horde_minion,
            )
        plan = []
        if leaders:
            plan.append(TierSpec(Tier.LEADER, self._rng.choice(leaders), cfg.spawn_leaders,
                                 LEADER_RING_RADIUS, cfg.level_leader, cfg.scale_leader))
        plan += [
            TierSpec(Tier.MINI_BOSS, mini_boss, cfg.spawn_mini_bosses,
                     FORMATION_BASE_RADIUS * MINI_BOSS_RING_FACTOR,
                     cfg.level_mini_boss, cfg.scale_mini_boss),
            TierSpec(Tier.ELITE, elite, cfg.spawn_elites,
                     FORMATION_BASE_RADIUS * ELITE_RING_FACTOR, cfg.level_elite),
            TierSpec(Tier.MINION, minion, cfg.spawn_minions,
                     FORMATION_BASE_RADIUS, cfg.level_minion),
        ]
        return plan

    def tier_spec(self, city: City, tier: Tier, side: Side) -> TierSpec | None:
        """The tier layout a respawn of *tier* uses."""
        for spec in self.wave_plan(city, side):
            if spec.tier is tier:
                return spec
        return None

    @staticmethod
    def ring_positions(center: Point, radius: float, count: int) -> list[Point]:
        """*count* points evenly spaced on a circle around *center*."""
        if count <= 0:
            return []
        step = 2 * math.pi / max(1, count)
        return [center.on_ring(radius, i * step) for i in range(count)]

    # -- Spawning --------------------------------------------------------

    def spawn_actor(self, scene: Scene, spec: TierSpec, position: Point) -> ActorHandle | None:
        """Spawn one actor grounded at *position* in its narrative posture."""
        handle = scene.spawn_actor(spec.template_id, ground_point(scene, position))
        if handle is None:
            log.warning("[SPAWN] Failed to spawn %s (template %d) at %s",
                        spec.tier.label, spec.template_id, position)
            return None
        handle.set_level(spec.level)
        if spec.scale != 1.0:
            handle.set_scale(spec.scale)
        handle.set_faction(FACTION_TEMPLATE_NEUTRAL)
        handle.set_react_state(ReactState.PASSIVE)
        return handle

    def spawn_wave(self, event: SiegeEvent, scene: Scene, side: Side) -> list[SpawnResult]:
        """Spawn and register one side's wave.

        Returns:
            One result per planned position, failed spawns included.
        """
        anchor = event.city.path.anchor_for(side)
        results: list[SpawnResult] = []
        for spec in self.wave_plan(event.city, side):
            for position in self.ring_positions(anchor, spec.radius, spec.count):
                handle = self.spawn_actor(scene, spec, position)
                if handle is None:
                    results.append(SpawnResult(spec.tier, position))
                    continue
                try:
                    event.directory.register(handle.identity, spec.tier, side)
                except DuplicateActor:
                    log.error("[SPAWN] Host reused identity %d, dropping actor", handle.identity)
                    handle.despawn()
                    results.append(SpawnResult(spec.tier, position))
                    continue
                results.append(SpawnResult(spec.tier, position, handle.identity))
                if spec.tier is Tier.LEADER:
                    self._leader_yell(handle)

        spawned = sum(1 for r in results if r.spawned)
        log.info("[SPAWN] %s: %d/%d %s actors spawned", event.city.name, spawned,
                 len(results), side.value)
        return results

    def _leader_yell(self, handle: ActorHandle) -> None:
        lines = split_lines(self._config.yell_leader_spawn)
        if lines:
            handle.say(self._rng.choice(lines))
