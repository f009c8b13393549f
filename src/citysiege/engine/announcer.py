"""Announcer — localized and server-wide siege messages.

Localized texts go to the city's audience (everyone when the announce
radius is 0, otherwise sessions on the city's map within the radius of
its center).  Countdown, battle-start and status broadcasts go to every
session.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from citysiege.util.locale import Localizer, TextId
from citysiege.util.text import render_template

if TYPE_CHECKING:
    from citysiege.loaders.config_loader import SiegeConfig
    from citysiege.models.city import City
    from citysiege.world.interfaces import Audience, Session

log = logging.getLogger(__name__)


class Announcer:
    """Sends siege messages to the right sessions."""

    def __init__(self, config: SiegeConfig, audience: Audience,
                 localizer: Localizer | None = None) -> None:
        self._config = config
        self._audience = audience
        self._localizer = localizer or Localizer()
        self.apply_message_overrides(config)

    def apply_message_overrides(self, config: SiegeConfig) -> None:
        """Use the configured English messages, which take ``{CITYNAME}``."""
        self._config = config
        for text_id, template in (
            (TextId.SIEGE_START, config.message_siege_start),
            (TextId.SIEGE_END, config.message_siege_end),
            (TextId.REWARD_GENERIC, config.message_reward),
        ):
            if template:
                self._localizer.override(
                    "enUS", text_id, render_template(template, {"CITYNAME": "{city}"}),
                )

    @property
    def localizer(self) -> Localizer:
        return self._localizer

    def use_localizer(self, localizer: Localizer) -> None:
        """Swap in freshly loaded locale tables; call before re-applying overrides."""
        self._localizer = localizer

    # -- Recipients ------------------------------------------------------

    def recipients(self, city: City) -> list[Session]:
        """Sessions that hear announcements about *city*."""
        radius = self._config.announce_radius
        sessions = self._audience.sessions()
        if radius <= 0:
            return sessions
        return [
            s for s in sessions
            if s.map_id == city.map_id and s.position.distance_to(city.center) <= radius
        ]

    # -- Sending ---------------------------------------------------------

    def announce(self, city: City, text_id: TextId, /, **fields: object) -> int:
        """Send a localized text to the city's audience.

        Returns:
            Number of sessions reached.
        """
        recipients = self.recipients(city)
        for session in recipients:
            session.send_message(self._localizer.text(session.locale, text_id, **fields))
        log.debug("[ANNOUNCE] %s to %d sessions", text_id.value, len(recipients))
        return len(recipients)

    def broadcast(self, text: str) -> int:
        """Send *text* to every session."""
        sessions = self._audience.sessions()
        for session in sessions:
            session.send_message(text)
        log.debug("[BROADCAST] %s", text)
        return len(sessions)

    def localized(self, session: Session, text_id: TextId, **fields: object) -> str:
        return self._localizer.text(session.locale, text_id, **fields)
