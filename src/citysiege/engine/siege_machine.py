"""Siege event state machine — Narrative → Combat → Ended.

One machine instance drives every active event; all per-event state
lives on the :class:`~citysiege.models.siege.SiegeEvent`.  Phases only
move forward.  Within one tick the narrative checks run before the combat
transition, which runs before the win-condition check.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from citysiege.engine.formation import combat_posture
from citysiege.engine.path_driver import NativeMover
from citysiege.models.actor import Side
from citysiege.models.city import Faction
from citysiege.models.siege import Outcome, SiegePhase
from citysiege.util.constants import FINAL_MINUTES, NARRATIVE_THRESHOLDS, OBJECTIVE_SEARCH_RADIUS
from citysiege.util.errors import StateViolation
from citysiege.util.events import (
    ActorDied,
    ActorRespawned,
    NarrativeMilestone,
    SiegeEnded,
    SiegePhaseChanged,
    SiegeStarted,
)
from citysiege.util.locale import Localizer, TextId
from citysiege.util.text import (
    COLOR_END,
    COLOR_ORANGE,
    COLOR_RED,
    COLOR_YELLOW,
    SIEGE_TAG,
    health_color,
    render_template,
    split_lines,
    split_scripts,
)

if TYPE_CHECKING:
    from citysiege.engine.ambience import AmbienceService
    from citysiege.engine.announcer import Announcer
    from citysiege.engine.bots import BotCoordinator
    from citysiege.engine.formation import FormationSpawner
    from citysiege.engine.path_driver import PathProgressionDriver
    from citysiege.engine.respawn import RespawnScheduler
    from citysiege.engine.rewards import RewardService
    from citysiege.loaders.config_loader import SiegeConfig
    from citysiege.models.siege import SiegeEvent
    from citysiege.util.events import EventBus
    from citysiege.world.interfaces import ActorHandle, Mover, Scene, World

log = logging.getLogger(__name__)

LEADER_FALLBACK_NAME = "the leader"

_COUNTDOWN = {
    75: (COLOR_YELLOW, "Defenders, prepare!"),
    50: (COLOR_ORANGE, "Defenders, to your posts!"),
    25: (COLOR_RED, "FINAL WARNING!"),
}


class SiegeEventStateMachine:
    """Lifecycle and per-tick processing of siege events."""

    def __init__(
        self,
        config: SiegeConfig,
        world: World,
        announcer: Announcer,
        spawner: FormationSpawner,
        respawn: RespawnScheduler,
        driver: PathProgressionDriver,
        bots: BotCoordinator,
        ambience: AmbienceService,
        rewards: RewardService,
        event_bus: EventBus,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config
        self._world = world
        self._announcer = announcer
        self._spawner = spawner
        self._respawn = respawn
        self._driver = driver
        self._bots = bots
        self._ambience = ambience
        self._rewards = rewards
        self._event_bus = event_bus
        self._rng = rng or random.Random()

    def reconfigure(self, config: SiegeConfig, localizer: Localizer | None = None) -> None:
        """Hand a reloaded configuration to every component."""
        self._config = config
        if localizer is not None:
            self._announcer.use_localizer(localizer)
        self._announcer.apply_message_overrides(config)
        for component in (self._spawner, self._respawn, self._bots, self._ambience, self._rewards):
            component.reconfigure(config)

    # ================================================================
    # Start
    # ================================================================

    def begin(self, event: SiegeEvent, now: float, busy_bots: set[int] | None = None) -> None:
        """Populate a freshly created event and open the narrative phase."""
        city = event.city
        scene = self._world.find_scene(city.map_id)
        if scene is None:
            log.error("[SIEGE] Map %d for %s is not loaded, no actors spawned",
                      city.map_id, city.name)

        self._resolve_objective(event, scene)
        event.script = self.choose_script(event)
        event.last_yell_at = now
        event.last_status_at = now

        self._announcer.announce(city, TextId.PRE_WARNING, city=city.name,
                                 seconds=int(event.narrative_seconds))
        self._ambience.apply_weather(event)
        self._bots.recruit(event, busy_bots)
        self._announcer.announce(city, TextId.SIEGE_START, city=city.name)

        if scene is not None:
            self._spawner.spawn_wave(event, scene, Side.ATTACKER)
            self._spawner.spawn_wave(event, scene, Side.DEFENDER)
        self._ambience.play_music(event, self._config.music_rp)

        attackers = event.directory.count(Side.ATTACKER)
        defenders = event.directory.count(Side.DEFENDER)
        log.info("[SIEGE] Siege %d started at %s: %d attackers, %d defenders, combat in %.0fs",
                 event.event_id, city.name, attackers, defenders, event.narrative_seconds)
        self._event_bus.emit(SiegeStarted(
            event_id=event.event_id, city=city.name, attackers=attackers, defenders=defenders,
        ))

    def _resolve_objective(self, event: SiegeEvent, scene: Scene | None) -> None:
        city = event.city
        candidates = [] if scene is None else scene.find_actors_by_template(
            city.leader_template, city.leader, OBJECTIVE_SEARCH_RADIUS,
        )
        alive = [a for a in candidates if a.is_alive] or candidates
        if not alive:
            log.error("[SIEGE] Leader %d not found near %s in %s, attackers win by default",
                      city.leader_template, city.leader, city.name)
            return
        event.objective_id = alive[0].identity
        event.objective_name = alive[0].name
        log.info("[SIEGE] %s is defended by %s (%d)", city.name,
                 event.objective_name, event.objective_id)

    def choose_script(self, event: SiegeEvent) -> list[str]:
        """Pick one of the attackers' scripts and fill in its placeholders."""
        source = (self._config.rp_alliance if event.city.attacking_faction is Faction.ALLIANCE
                  else self._config.rp_horde)
        scripts = split_scripts(source)
        if not scripts:
            return []
        values = {"LEADER": event.objective_name, "CITY": event.city.name}
        fallbacks = {"LEADER": LEADER_FALLBACK_NAME}
        return [render_template(line, values, fallbacks) for line in self._rng.choice(scripts)]

    # ================================================================
    # Tick
    # ================================================================

    def tick(self, event: SiegeEvent, now: float) -> None:
        """Advance one event by one host tick."""
        if event.phase is SiegePhase.ENDED:
            return
        if event.phase is SiegePhase.NARRATIVE:
            self._tick_narrative(event, now)
            if event.elapsed(now) >= event.narrative_seconds:
                self.enter_combat(event, now)
        if event.phase is SiegePhase.COMBAT:
            self._tick_combat(event, now)

    # -- Narrative -------------------------------------------------------

    def _tick_narrative(self, event: SiegeEvent, now: float) -> None:
        self._announce_countdown(event, now)

        if now - event.last_yell_at < self._config.yell_frequency:
            return
        event.last_yell_at = now
        if event.script_cursor >= len(event.script):
            return
        speakers = self.speakers(event)
        if not speakers:
            return
        line = event.script[event.script_cursor]
        self._rng.choice(speakers).say(line)
        event.script_cursor += 1
        log.debug("[SIEGE] %s line %d/%d: %s", event.city.name, event.script_cursor,
                  len(event.script), line)

    def _announce_countdown(self, event: SiegeEvent, now: float) -> None:
        """Announce at most one newly crossed threshold, highest first."""
        if event.narrative_seconds <= 0:
            return
        remaining = event.narrative_remaining(now)
        percent = remaining / event.narrative_seconds * 100.0
        for threshold in NARRATIVE_THRESHOLDS:
            if threshold in event.milestones:
                continue
            if percent > threshold:
                return
            event.milestones.add(threshold)
            color, suffix = _COUNTDOWN.get(threshold, (COLOR_YELLOW, "Defenders, prepare!"))
            self._announcer.broadcast(
                f"{SIEGE_TAG} {color}{int(remaining)} seconds{COLOR_END} until the siege of "
                f"{event.city.name} begins! {suffix}"
            )
            self._event_bus.emit(NarrativeMilestone(
                event_id=event.event_id, city=event.city.name, percent=threshold,
            ))
            return

    # -- Combat entry ----------------------------------------------------

    def enter_combat(self, event: SiegeEvent, now: float) -> bool:
        """Switch every actor to combat posture and send the first orders."""
        try:
            event.advance_phase(SiegePhase.COMBAT)
        except StateViolation as e:
            log.debug("%s", e)
            return False
        city = event.city
        log.info("[STATE] Siege %d (%s): NARRATIVE → COMBAT", event.event_id, city.name)

        self._announcer.broadcast(
            f"{SIEGE_TAG} {COLOR_RED}THE BATTLE HAS BEGUN!{COLOR_END} The siege of {city.name} "
            "is now underway! Defenders, to arms!"
        )
        self._ambience.play_music(event, self._config.music_combat)
        self._bots.activate(event)

        scene = self._world.find_scene(city.map_id)
        if scene is not None:
            for entry in event.directory.natives():
                handle = scene.get_actor(entry.identity)
                if handle is None or not handle.is_alive:
                    continue
                faction, react = combat_posture(self._config, city, entry.side)
                handle.set_faction(faction)
                handle.set_react_state(react)

        issued = self._driver.issue_initial_orders(event, self.movers(event, scene))
        log.info("[SIEGE] %s: %d actors marching", city.name, issued)
        event.last_yell_at = now
        event.last_status_at = now
        self._event_bus.emit(SiegePhaseChanged(
            event_id=event.event_id, city=city.name, new_phase=SiegePhase.COMBAT.value,
        ))
        return True

    # -- Combat ----------------------------------------------------------

    def _tick_combat(self, event: SiegeEvent, now: float) -> None:
        scene = self._world.find_scene(event.city.map_id)

        # 1. Path progression
        self._driver.step(event, self.movers(event, scene))

        # 2. Respawns
        for old_identity, new_identity in self._respawn.process_due(event, scene, now):
            entry = event.directory.find(new_identity)
            mover = self._mover_for(event, scene, new_identity)
            if mover is not None:
                self._driver.send_order(event, new_identity, mover)
            self._event_bus.emit(ActorRespawned(
                event_id=event.event_id, old_identity=old_identity, new_identity=new_identity,
                tier=entry.tier.value if entry else "",
            ))

        # 3. Death detection
        self._detect_deaths(event, scene, now)

        # 4. Taunts
        if now - event.last_yell_at >= self._config.yell_frequency:
            event.last_yell_at = now
            self._taunt(event)

        # 5. Status
        if now - event.last_status_at >= self._config.status_interval:
            event.last_status_at = now
            self._announcer.broadcast(self.status_message(event, now))

        # 6. Win condition
        outcome = self.check_outcome(event, now)
        if outcome is not None:
            self.end(event, now, outcome)

    def _detect_deaths(self, event: SiegeEvent, scene: Scene | None, now: float) -> None:
        for entry in event.directory:
            if event.is_queued(entry.identity):
                continue
            template_id = 0
            if entry.is_bot:
                bot = self._bots.find(entry.identity)
                if bot is None or not bot.in_world or bot.is_alive:
                    continue
            else:
                handle = None if scene is None else scene.get_actor(entry.identity)
                if handle is None or handle.is_alive:
                    continue
                template_id = handle.template_id
            if self._respawn.record_death(event, entry.identity, now, template_id) is not None:
                self._event_bus.emit(ActorDied(
                    event_id=event.event_id, identity=entry.identity,
                    tier=entry.tier.value, is_bot=entry.is_bot,
                ))

    def _taunt(self, event: SiegeEvent) -> None:
        lines = split_lines(self._config.yell_combat)
        speakers = self.speakers(event)
        if lines and speakers:
            self._rng.choice(speakers).say(self._rng.choice(lines))

    # -- Win condition ---------------------------------------------------

    def objective_handle(self, event: SiegeEvent) -> ActorHandle | None:
        if event.objective_id is None:
            return None
        scene = self._world.find_scene(event.city.map_id)
        return None if scene is None else scene.get_actor(event.objective_id)

    def objective_alive(self, event: SiegeEvent) -> bool:
        handle = self.objective_handle(event)
        return handle is not None and handle.is_alive

    def check_outcome(self, event: SiegeEvent, now: float) -> Outcome | None:
        """The outcome if the event should end now, else None.

        An administrative override wins over everything; a missing or dead
        objective means attacker victory; running out the clock means
        defender victory.
        """
        if event.forced_outcome is not None:
            return event.forced_outcome
        if not self.objective_alive(event):
            return Outcome.ATTACKERS
        if now >= event.ends_at:
            return Outcome.DEFENDERS
        return None

    # ================================================================
    # End
    # ================================================================

    def end(self, event: SiegeEvent, now: float, outcome: Outcome) -> bool:
        """Resolve the event; a second call is ignored.

        Returns:
            True if this call ended the event.
        """
        try:
            event.advance_phase(SiegePhase.ENDED)
        except StateViolation as e:
            log.debug("%s", e)
            return False
        city = event.city
        event.outcome = outcome
        event.ended_at = now
        leader = self.objective_handle(event)
        event.objective_killed = leader is not None and not leader.is_alive
        log.info("[STATE] Siege %d (%s): → ENDED, %s win%s", event.event_id, city.name,
                 outcome.value, " (forced)" if event.forced_outcome else "")

        self._ambience.revert_weather(event)
        despawned = self.despawn(event)
        self._bots.release(event)
        log.info("[SIEGE] %s: despawned %d actors", city.name, despawned)

        winner = event.winning_faction
        self._announcer.announce(city, TextId.SIEGE_END, city=city.name)
        self._announcer.announce(
            city,
            TextId.WIN_DEFENDERS if outcome is Outcome.DEFENDERS else TextId.WIN_ATTACKERS,
            faction=winner.display_name, city=city.name,
        )
        self._ambience.play_music(
            event,
            self._config.music_victory if outcome is Outcome.DEFENDERS
            else self._config.music_defeat,
        )
        if self._config.reward_on_defense:
            self._rewards.distribute(city, winner)

        if event.objective_killed and leader is not None:
            leader.respawn()
            log.info("[SIEGE] %s respawned after the siege of %s", event.objective_name, city.name)

        self._event_bus.emit(SiegePhaseChanged(
            event_id=event.event_id, city=city.name, new_phase=SiegePhase.ENDED.value,
        ))
        self._event_bus.emit(SiegeEnded(
            event_id=event.event_id, city=city.name, outcome=outcome.value,
            forced=event.forced_outcome is not None,
        ))
        return True

    def despawn(self, event: SiegeEvent) -> int:
        """Remove every native actor of *event* from the world."""
        scene = self._world.find_scene(event.city.map_id)
        count = 0
        for entry in event.directory.natives():
            handle = None if scene is None else scene.get_actor(entry.identity)
            if handle is not None:
                handle.despawn()
                count += 1
            event.directory.remove(entry.identity)
        event.death_queue = [r for r in event.death_queue if r.is_bot]
        return count

    # ================================================================
    # Queries
    # ================================================================

    def movers(self, event: SiegeEvent, scene: Scene | None) -> dict[int, Mover]:
        """Fresh movers for every native actor and bot of *event*."""
        movers: dict[int, Mover] = {}
        if scene is not None:
            for entry in event.directory.natives():
                handle = scene.get_actor(entry.identity)
                if handle is not None:
                    movers[entry.identity] = NativeMover(handle)
        movers.update(self._bots.movers(event))
        return movers

    def _mover_for(self, event: SiegeEvent, scene: Scene | None, identity: int) -> Mover | None:
        entry = event.directory.find(identity)
        if entry is None:
            return None
        if entry.is_bot:
            return self._bots.movers(event).get(identity)
        handle = None if scene is None else scene.get_actor(identity)
        return None if handle is None else NativeMover(handle)

    def speakers(self, event: SiegeEvent) -> list[ActorHandle]:
        """Live leader and mini-boss actors."""
        scene = self._world.find_scene(event.city.map_id)
        if scene is None:
            return []
        handles = []
        for entry in event.directory.natives():
            if not entry.tier.speaks:
                continue
            handle = scene.get_actor(entry.identity)
            if handle is not None and handle.is_alive:
                handles.append(handle)
        return handles

    def status_message(self, event: SiegeEvent, now: float) -> str:
        """The periodic combat status broadcast."""
        minutes = int(event.remaining(now) // 60)
        message = (f"{SIEGE_TAG} {COLOR_YELLOW}STATUS UPDATE:{COLOR_END} {event.city.name} "
                   f"siege - {minutes} minutes remaining. ")
        leader = self.objective_handle(event)
        if leader is not None and leader.is_alive:
            pct = int(leader.health_pct)
            message += f"Leader health: {health_color(pct)}{pct}%{COLOR_END}"
            if pct <= 25:
                message += f" {COLOR_RED}CRITICAL!{COLOR_END} The city leader is in grave danger!"
            elif pct <= 50:
                message += " The city leader is under heavy assault!"
        else:
            message += "Leader status: Unknown (not in combat yet)"
        if 0 < minutes <= FINAL_MINUTES:
            message += f" {COLOR_YELLOW}FINAL MINUTES!{COLOR_END}"
        return message

    # ================================================================
    # Teardown
    # ================================================================

    def abort(self, event: SiegeEvent, now: float) -> int:
        """End *event* silently: no announcements, no rewards.

        Used by cleanup and shutdown.  Returns the number of actors removed.
        """
        if event.phase is not SiegePhase.ENDED:
            event.advance_phase(SiegePhase.ENDED)
            event.ended_at = now
            log.info("[STATE] Siege %d (%s): → ENDED (aborted)", event.event_id, event.city.name)
        self._ambience.revert_weather(event)
        removed = self.despawn(event)
        self._bots.release(event)
        return removed
