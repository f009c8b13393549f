"""Respawn scheduler — death queue and delayed re-spawning.

A dead native actor is replaced by a fresh spawn at its side's anchor and
its directory entry is moved to the new identity, reset to the start of
its path.  A dead bot keeps its identity: it is resurrected and moved
back to its anchor.  Failed respawns stay queued and are retried on the
next tick.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import replace
from typing import TYPE_CHECKING

from citysiege.engine.formation import FormationSpawner, combat_posture
from citysiege.models.actor import Side, Tier
from citysiege.models.siege import DeathRecord
from citysiege.util.constants import DEFENDER_RESPAWN_MAX_OFFSET, DEFENDER_RESPAWN_MIN_OFFSET
from citysiege.util.errors import DuplicateActor, NotFound

if TYPE_CHECKING:
    from citysiege.engine.bots import BotCoordinator
    from citysiege.loaders.config_loader import SiegeConfig
    from citysiege.models.geometry import Point
    from citysiege.models.siege import SiegeEvent
    from citysiege.world.interfaces import Scene

log = logging.getLogger(__name__)


class RespawnScheduler:
    """Queues deaths and processes due respawns."""

    def __init__(self, config: SiegeConfig, spawner: FormationSpawner,
                 bots: BotCoordinator, rng: random.Random | None = None) -> None:
        self._config = config
        self._spawner = spawner
        self._bots = bots
        self._rng = rng or random.Random()

    def reconfigure(self, config: SiegeConfig) -> None:
        self._config = config

    def delay_for(self, tier: Tier, side: Side) -> float:
        """Seconds a dead actor of *tier* waits before coming back."""
        cfg = self._config
        if tier is Tier.BOT:
            return float(cfg.playerbots_respawn_delay)
        if side is Side.DEFENDER or tier is Tier.DEFENDER:
            return float(cfg.respawn_defender)
        return float({
            Tier.LEADER: cfg.respawn_leader,
            Tier.MINI_BOSS: cfg.respawn_mini_boss,
            Tier.ELITE: cfg.respawn_elite,
            Tier.MINION: cfg.respawn_minion,
        }[tier])

    # -- Queue -----------------------------------------------------------

    def record_death(self, event: SiegeEvent, identity: int, now: float,
                     template_id: int = 0) -> DeathRecord | None:
        """Queue *identity* for respawn unless it is already queued.

        Native actors are only queued when respawning is enabled; a native
        actor that will not come back is dropped from the directory.
        """
        if event.is_queued(identity):
            return None
        entry = event.directory.find(identity)
        if entry is None:
            return None
        if not entry.is_bot and not self._config.respawn_enabled:
            event.directory.remove(identity)
            return None
        record = DeathRecord(identity, entry.tier, entry.side, now, entry.is_bot, template_id)
        event.death_queue.append(record)
        log.info("[RESPAWN] %s: %s %d died, back in %.0fs", event.city.name,
                 entry.tier.label, identity, self.delay_for(entry.tier, entry.side))
        return record

    def due(self, event: SiegeEvent, now: float) -> list[DeathRecord]:
        return [r for r in event.death_queue
                if now - r.died_at >= self.delay_for(r.tier, r.side)]

    def process_due(self, event: SiegeEvent, scene: Scene | None,
                    now: float) -> list[tuple[int, int]]:
        """Respawn every due entry.

        Returns:
            ``(old_identity, new_identity)`` pairs for completed respawns.
        """
        completed: list[tuple[int, int]] = []
        for record in self.due(event, now):
            if record.is_bot:
                new_identity = record.identity if self._bots.respawn(event, record) else None
            else:
                new_identity = self._respawn_native(event, scene, record)
            if new_identity is None:
                continue
            event.death_queue.remove(record)
            completed.append((record.identity, new_identity))
        return completed

    # -- Native respawn --------------------------------------------------

    def respawn_point(self, event: SiegeEvent, side: Side) -> Point:
        """Anchor point for a respawn; defenders land off the objective."""
        if side is Side.DEFENDER:
            distance = self._rng.uniform(DEFENDER_RESPAWN_MIN_OFFSET, DEFENDER_RESPAWN_MAX_OFFSET)
            return event.city.leader.on_ring(distance, self._rng.uniform(0, 2 * math.pi))
        return event.city.spawn

    def _respawn_native(self, event: SiegeEvent, scene: Scene | None,
                        record: DeathRecord) -> int | None:
        if scene is None:
            return None
        spec = self._spawner.tier_spec(event.city, record.tier, record.side)
        if spec is None:
            log.warning("[RESPAWN] No spec for %s, dropping %d", record.tier.label, record.identity)
            event.directory.remove(record.identity)
            event.death_queue.remove(record)
            return None
        if record.template_id:
            spec = replace(spec, template_id=record.template_id)

        handle = self._spawner.spawn_actor(scene, spec, self.respawn_point(event, record.side))
        if handle is None:
            return None
        faction, react = combat_posture(self._config, event.city, record.side)
        handle.set_faction(faction)
        handle.set_react_state(react)

        try:
            event.directory.reassign(record.identity, handle.identity)
        except (NotFound, DuplicateActor) as e:
            log.error("[RESPAWN] Could not move %d to %d: %s", record.identity, handle.identity, e)
            handle.despawn()
            return None

        old = scene.get_actor(record.identity)
        if old is not None:
            old.despawn()
        log.info("[RESPAWN] %s: %s %d respawned as %d", event.city.name,
                 record.tier.label, record.identity, handle.identity)
        return handle.identity
