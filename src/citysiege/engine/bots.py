"""Bot integration — recruits external bot players into a siege.

The bot subsystem is a capability that is either present or absent;
``NullBotIntegration`` stands in when it is absent so the engine has a
single code path.  Recruited bots are registered in the event's actor
directory and driven by the same path driver as native actors.
"""

from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING, Protocol

from citysiege.models.actor import Side, Tier
from citysiege.models.siege import BotReturnState
from citysiege.util.constants import (
    BOT_ALREADY_RESPAWNED_RADIUS,
    BOT_RECRUIT_SPREAD,
    BOT_TELEPORT_SPREAD,
)
from citysiege.util.errors import DuplicateActor, NotFound

if TYPE_CHECKING:
    from citysiege.loaders.config_loader import SiegeConfig
    from citysiege.models.geometry import Point
    from citysiege.models.siege import DeathRecord, SiegeEvent
    from citysiege.world.interfaces import BotHandle

log = logging.getLogger(__name__)


class BotIntegration(Protocol):
    available: bool

    def candidates(self) -> list[BotHandle]: ...
    def find(self, identity: int) -> BotHandle | None: ...


class NullBotIntegration:
    """Used when no bot subsystem is installed."""

    available = False

    def candidates(self) -> list[BotHandle]:
        return []

    def find(self, identity: int) -> BotHandle | None:
        return None


class BotMover:
    """Adapts a bot handle to the mover interface."""

    def __init__(self, bot: BotHandle) -> None:
        self.bot = bot

    @property
    def position(self) -> Point:
        return self.bot.position

    @property
    def is_alive(self) -> bool:
        return self.bot.is_alive and self.bot.in_world

    @property
    def in_combat(self) -> bool:
        return self.bot.in_combat

    @property
    def is_moving(self) -> bool:
        return self.bot.is_traveling

    def issue_move_order(self, point: Point) -> None:
        self.bot.set_travel_target(point)


class BotCoordinator:
    """Bot lifecycle: recruit, activate, respawn, release."""

    def __init__(self, config: SiegeConfig, integration: BotIntegration | None = None,
                 rng: random.Random | None = None) -> None:
        self._config = config
        self._integration = integration or NullBotIntegration()
        self._rng = rng or random.Random()

    def reconfigure(self, config: SiegeConfig) -> None:
        self._config = config

    @property
    def enabled(self) -> bool:
        return self._config.playerbots_enabled and self._integration.available

    def find(self, identity: int) -> BotHandle | None:
        return self._integration.find(identity)

    # -- Recruitment -----------------------------------------------------

    def _eligible(self, bot: BotHandle, busy: set[int]) -> bool:
        return (
            bot.identity not in busy
            and bot.level >= self._config.playerbots_min_level
            and bot.is_alive
            and bot.in_world
            and not bot.in_instance
            and not bot.in_group
            and not bot.is_teleporting
        )

    def recruit(self, event: SiegeEvent, busy: set[int] | None = None) -> int:
        """Pull eligible bots into *event* and move them to their anchors.

        Args:
            busy: Bot identities already serving in another siege.

        Returns:
            Number of bots recruited.
        """
        if not self.enabled:
            return 0
        busy = set(busy or ())
        recruited = 0
        for side, limit in ((Side.DEFENDER, self._config.playerbots_max_defenders),
                            (Side.ATTACKER, self._config.playerbots_max_attackers)):
            faction = event.city.faction if side is Side.DEFENDER else event.city.attacking_faction
            pool = [b for b in self._integration.candidates()
                    if b.faction is faction and self._eligible(b, busy)]
            self._rng.shuffle(pool)
            for bot in pool[:limit]:
                try:
                    event.directory.register(bot.identity, Tier.BOT, side, is_bot=True)
                except DuplicateActor:
                    continue
                event.bot_returns[bot.identity] = BotReturnState(
                    identity=bot.identity,
                    map_id=bot.map_id,
                    position=bot.position,
                    orientation=bot.orientation,
                    was_pvp=bot.is_pvp,
                    side=side,
                    restore_strategy=("+rpg" if bot.has_strategy("rpg") else "-rpg")
                    + ("" if bot.has_strategy("pvp") else ",-pvp"),
                )
                busy.add(bot.identity)
                bot.teleport(event.city.map_id, self._scatter(
                    event.city.path.anchor_for(side), BOT_RECRUIT_SPREAD))
                recruited += 1
            log.info("[BOTS] %s: recruited %d %s bots", event.city.name,
                     min(len(pool), limit), side.value)
        return recruited

    def activate(self, event: SiegeEvent) -> int:
        """Switch recruited bots to siege behaviour at combat start."""
        activated = 0
        for entry in event.directory.bots():
            bot = self._integration.find(entry.identity)
            if bot is None or not bot.in_world:
                continue
            bot.set_pvp(True)
            bot.change_strategy("+pvp,-rpg")
            activated += 1
        log.info("[BOTS] %s: %d bots activated", event.city.name, activated)
        return activated

    def movers(self, event: SiegeEvent) -> dict[int, BotMover]:
        """Fresh movers for every recruited bot that is in the world."""
        movers = {}
        for entry in event.directory.bots():
            bot = self._integration.find(entry.identity)
            if bot is not None and bot.in_world:
                movers[entry.identity] = BotMover(bot)
        return movers

    # -- Respawn ---------------------------------------------------------

    def respawn(self, event: SiegeEvent, record: DeathRecord) -> bool:
        """Bring a dead bot back at its anchor.

        Returns:
            False when the bot is not reachable yet and should stay queued.
        """
        bot = self._integration.find(record.identity)
        if bot is None or not bot.in_world:
            return False
        anchor = event.city.path.anchor_for(record.side)
        if not (bot.is_alive and bot.position.distance_to(anchor) <= BOT_ALREADY_RESPAWNED_RADIUS):
            if not bot.is_alive:
                bot.resurrect()
            bot.set_pvp(True)
            bot.teleport(event.city.map_id, self._scatter(anchor, BOT_TELEPORT_SPREAD))
        try:
            event.directory.reassign(record.identity, record.identity)
        except NotFound:
            event.directory.register(record.identity, Tier.BOT, record.side, is_bot=True)
        log.info("[BOTS] %s respawned at %s anchor", bot.name, record.side.value)
        return True

    # -- Release ---------------------------------------------------------

    def release(self, event: SiegeEvent) -> int:
        """Return every recruited bot to its pre-siege state, once."""
        released = 0
        while event.bot_returns:
            identity, state = event.bot_returns.popitem()
            event.directory.remove(identity)
            bot = self._integration.find(identity)
            if bot is None:
                continue
            if not bot.is_alive or bot.in_instance or bot.is_teleporting:
                log.info("[BOTS] Skipping release of %s (dead, instanced or teleporting)", bot.name)
                continue
            bot.stop_combat()
            bot.set_pvp(state.was_pvp)
            bot.change_strategy(state.restore_strategy)
            bot.teleport(state.map_id, state.position, state.orientation)
            released += 1
        if released:
            log.info("[BOTS] %s: released %d bots", event.city.name, released)
        return released

    def _scatter(self, anchor: Point, spread: float) -> Point:
        return anchor.on_ring(self._rng.uniform(0, spread), self._rng.uniform(0, 2 * math.pi))
