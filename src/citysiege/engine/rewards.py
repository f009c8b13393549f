"""Reward distribution for the winning side of a siege."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from citysiege.util.locale import TextId
from citysiege.util.text import COLOR_END, COLOR_GOLD, format_money

if TYPE_CHECKING:
    from citysiege.engine.announcer import Announcer
    from citysiege.loaders.config_loader import SiegeConfig
    from citysiege.models.city import City, Faction
    from citysiege.world.interfaces import Audience, Session

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reward:
    honor: int
    copper: int

    def describe(self) -> str:
        """The `` Received: ...`` suffix of the reward message."""
        parts = []
        if self.honor > 0:
            parts.append(f"{COLOR_GOLD}{self.honor} Honor{COLOR_END}")
        if self.copper > 0:
            parts.append(f"{COLOR_GOLD}{format_money(self.copper)}{COLOR_END}")
        if not parts:
            return ""
        return " Received: " + " and ".join(parts)


class RewardService:
    """Grants honor and money to qualifying members of the winning faction."""

    def __init__(self, config: SiegeConfig, audience: Audience, announcer: Announcer) -> None:
        self._config = config
        self._audience = audience
        self._announcer = announcer

    def reconfigure(self, config: SiegeConfig) -> None:
        self._config = config

    def reward_for(self, level: int) -> Reward:
        cfg = self._config
        return Reward(
            honor=cfg.reward_honor,
            copper=cfg.reward_gold_base + cfg.reward_gold_per_level * level,
        )

    def qualifies(self, session: Session, city: City, faction: Faction) -> bool:
        if session.faction is not faction or session.map_id != city.map_id:
            return False
        if session.level < self._config.minimum_level:
            return False
        radius = self._config.announce_radius
        return radius <= 0 or session.position.distance_to(city.center) <= radius

    def distribute(self, city: City, faction: Faction) -> int:
        """Reward every qualifying session of *faction* near *city*.

        Returns:
            Number of sessions rewarded.
        """
        rewarded = 0
        for session in self._audience.sessions():
            if not self.qualifies(session, city, faction):
                continue
            reward = self.reward_for(session.level)
            if reward.honor > 0:
                session.grant_honor(reward.honor)
            if reward.copper > 0:
                session.modify_money(reward.copper)
            session.send_message(
                self._announcer.localized(session, TextId.REWARD_GENERIC, city=city.name)
                + reward.describe()
            )
            rewarded += 1
        log.info("[REWARD] %s: rewarded %d %s players", city.name, rewarded, faction.display_name)
        return rewarded
