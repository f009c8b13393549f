"""Siege orchestrator — the process-wide owner of active sieges.

Owns the active-event list and the configuration snapshot, decides when
the next automatic siege starts and retires ended events once their grace
window has passed.  Operations called from the admin surface return the
affected event on success or a human-readable rejection string.
"""

from __future__ import annotations

import itertools
import logging
import random
import time
from typing import TYPE_CHECKING, Callable

from citysiege.loaders.city_loader import find_city
from citysiege.models.city import City, Faction
from citysiege.models.siege import Outcome, SiegeEvent

if TYPE_CHECKING:
    from citysiege.engine.siege_machine import SiegeEventStateMachine
    from citysiege.loaders.config_loader import SiegeConfig
    from citysiege.models.actor import ActorEntry
    from citysiege.util.locale import Localizer

log = logging.getLogger(__name__)


class SiegeOrchestrator:
    """Schedules, starts, stops and purges siege events.

    Args:
        config: Configuration snapshot.
        cities: All known cities.
        machine: State machine that drives each event.
        rng: Random source for scheduling and city selection.
        clock: Wall-clock source used when a call gives no explicit time.
    """

    def __init__(self, config: SiegeConfig, cities: list[City],
                 machine: SiegeEventStateMachine,
                 rng: random.Random | None = None,
                 clock: Callable[[], float] = time.time) -> None:
        self.config = config
        self.cities = list(cities)
        self.machine = machine
        self.events: list[SiegeEvent] = []
        self.next_siege_at: float | None = None
        self._rng = rng or random.Random()
        self._clock = clock
        self._ids = itertools.count(1)

    # -- Scheduling ------------------------------------------------------

    def start(self, now: float | None = None) -> float:
        """Schedule the first automatic siege."""
        return self.schedule_next(self._now(now))

    def schedule_next(self, now: float) -> float:
        low = self.config.timer_min_minutes * 60.0
        high = max(low, self.config.timer_max_minutes * 60.0)
        self.next_siege_at = now + self._rng.uniform(low, high)
        log.info("[SCHEDULE] Next siege in %.0f minutes", (self.next_siege_at - now) / 60)
        return self.next_siege_at

    def tick(self, now: float | None = None) -> None:
        """Advance every event, purge expired ones, then maybe start a new one."""
        now = self._now(now)
        for event in list(self.events):
            self.machine.tick(event, now)

        grace = self.config.grace_period
        expired = [e for e in self.events if e.is_expired(now, grace)]
        if expired:
            self.events = [e for e in self.events if not e.is_expired(now, grace)]
            for event in expired:
                log.debug("[SCHEDULE] Purged siege %d (%s)", event.event_id, event.city.name)

        if not self.config.enabled or self.next_siege_at is None or now < self.next_siege_at:
            return
        result = self.start_siege(now=now)
        if isinstance(result, str):
            log.info("[SCHEDULE] Automatic siege skipped: %s", result)
        self.schedule_next(now)

    # -- Queries ---------------------------------------------------------

    @property
    def active_events(self) -> list[SiegeEvent]:
        return [e for e in self.events if e.is_active]

    def active_for(self, city: City) -> SiegeEvent | None:
        for event in self.active_events:
            if event.city.key == city.key:
                return event
        return None

    def find_city(self, name: str) -> City | None:
        return find_city(self.cities, name)

    def eligible_cities(self) -> list[City]:
        return [c for c in self.cities if c.enabled and self.active_for(c) is None]

    def busy_bots(self) -> set[int]:
        return {identity for e in self.active_events for identity in e.bot_returns}

    def locate_actor(self, identity: int) -> tuple[SiegeEvent, ActorEntry] | None:
        """The active event and directory entry an actor belongs to."""
        for event in self.active_events:
            entry = event.directory.find(identity)
            if entry is not None:
                return event, entry
        return None

    def seconds_until_next(self, now: float | None = None) -> float | None:
        if self.next_siege_at is None:
            return None
        return max(0.0, self.next_siege_at - self._now(now))

    @property
    def city_names(self) -> str:
        return ", ".join(c.name for c in self.cities)

    # -- Operations ------------------------------------------------------

    def start_siege(self, city_name: str | None = None,
                    now: float | None = None) -> SiegeEvent | str:
        """Start a siege at *city_name*, or at a random eligible city."""
        now = self._now(now)
        if not self.config.enabled:
            return "City Siege module is disabled."

        if city_name:
            city = self.find_city(city_name)
            if city is None:
                return f"Invalid city name. Valid cities: {self.city_names}"
            if not city.enabled:
                return f"City '{city.name}' is disabled in configuration."
            if self.active_for(city) is not None:
                return f"City '{city.name}' is already under siege!"

        if not self.config.allow_multiple_cities and self.active_events:
            busy = ", ".join(e.city.name for e in self.active_events)
            return f"A siege is already in progress ({busy}) and multiple sieges are not allowed."

        if not city_name:
            eligible = self.eligible_cities()
            if not eligible:
                return "No cities are available for a siege."
            city = self._rng.choice(eligible)

        event = SiegeEvent(
            event_id=next(self._ids),
            city=city,
            started_at=now,
            ends_at=now + self.config.event_duration_seconds,
            narrative_seconds=float(self.config.cinematic_delay),
        )
        try:
            self.machine.begin(event, now, self.busy_bots())
        except Exception:
            log.exception("[SIEGE] Siege %d at %s failed to start", event.event_id, city.name)
            try:
                self.machine.abort(event, now)
            except Exception:
                log.exception("[SIEGE] Could not clean up failed siege %d", event.event_id)
            return f"Siege of {city.name} failed to start, see server log."
        self.events.append(event)
        return event

    def stop_siege(self, city_name: str, faction_name: str,
                   now: float | None = None) -> SiegeEvent | str:
        """Force-end the siege at *city_name* with *faction_name* as winner."""
        now = self._now(now)
        if not self.active_events:
            return "No active siege events."
        winner = Faction.parse(faction_name)
        if winner is None:
            return "Invalid faction. Use 'alliance' or 'horde'."
        city = self.find_city(city_name)
        if city is None:
            return "Invalid city name."
        event = self.active_for(city)
        if event is None:
            return f"No active siege in {city.name}"

        outcome = Outcome.DEFENDERS if winner is city.faction else Outcome.ATTACKERS
        event.forced_outcome = outcome
        self.machine.end(event, now, outcome)
        return event

    def cleanup(self, city_name: str | None = None,
                now: float | None = None) -> list[str] | str:
        """Silently remove sieges and their actors.

        Returns:
            Names of the cleaned cities, or a rejection string.
        """
        now = self._now(now)
        targets = self.events
        if city_name:
            city = self.find_city(city_name)
            if city is None:
                return "Invalid city name."
            targets = [e for e in self.events if e.city.key == city.key]
        if not targets:
            return "No siege events to cleanup."

        cleaned = []
        for event in list(targets):
            self.machine.abort(event, now)
            self.events.remove(event)
            cleaned.append(event.city.name)
        return cleaned

    def reload(self, config: SiegeConfig, cities: list[City],
               localizer: Localizer | None = None) -> None:
        """Swap in a new configuration; running events keep their cities."""
        self.config = config
        self.cities = list(cities)
        self.machine.reconfigure(config, localizer)
        log.info("[CONFIG] Reloaded: %s", config.status_line)

    def shutdown(self, now: float | None = None) -> int:
        """Tear down every event; returns the number of actors removed."""
        now = self._now(now)
        removed = sum(self.machine.abort(event, now) for event in self.events)
        self.events.clear()
        log.info("[SCHEDULE] Shutdown removed %d siege actors", removed)
        return removed

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now
