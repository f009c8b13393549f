"""Ambience — zone weather override and music cues for a siege.

The weather override is applied once per event and reverted once; the
``weather_active`` flag on the event guards both directions.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from citysiege.engine.announcer import Announcer
    from citysiege.loaders.config_loader import SiegeConfig
    from citysiege.models.siege import SiegeEvent
    from citysiege.world.interfaces import World

log = logging.getLogger(__name__)


class WeatherState(IntEnum):
    FINE = 0
    FOG = 1
    LIGHT_RAIN = 3
    MEDIUM_RAIN = 4
    HEAVY_RAIN = 5
    LIGHT_SNOW = 6
    MEDIUM_SNOW = 7
    HEAVY_SNOW = 8
    LIGHT_SANDSTORM = 22
    MEDIUM_SANDSTORM = 41
    HEAVY_SANDSTORM = 42
    THUNDERS = 86
    BLACKRAIN = 90
    BLACKSNOW = 106


class AmbienceService:
    """Applies and reverts weather, plays music to the city's audience."""

    def __init__(self, config: SiegeConfig, world: World, announcer: Announcer) -> None:
        self._config = config
        self._world = world
        self._announcer = announcer

    def reconfigure(self, config: SiegeConfig) -> None:
        self._config = config

    # -- Weather ---------------------------------------------------------

    def apply_weather(self, event: SiegeEvent) -> bool:
        """Override the city's weather; no-op if already applied."""
        if not self._config.weather_enabled or event.weather_active:
            return False
        scene = self._world.find_scene(event.city.map_id)
        if scene is None:
            log.warning("[AMBIENCE] No scene for map %d, weather not applied", event.city.map_id)
            return False
        event.weather_snapshot = scene.weather_at(event.city.center)
        scene.set_weather(event.city.center, self._config.weather_type, self._config.weather_grade)
        event.weather_active = True
        log.info("[AMBIENCE] Weather over %s set to %s (grade %.2f)", event.city.name,
                 _weather_name(self._config.weather_type), self._config.weather_grade)
        return True

    def revert_weather(self, event: SiegeEvent) -> bool:
        """Restore the weather captured when the override was applied."""
        if not event.weather_active:
            return False
        event.weather_active = False
        scene = self._world.find_scene(event.city.map_id)
        if scene is None:
            return False
        weather_type, grade = event.weather_snapshot or (WeatherState.FINE, 0.0)
        scene.set_weather(event.city.center, int(weather_type), grade)
        log.info("[AMBIENCE] Weather over %s restored to %s", event.city.name,
                 _weather_name(weather_type))
        return True

    # -- Music -----------------------------------------------------------

    def play_music(self, event: SiegeEvent, music_id: int) -> int:
        if not self._config.music_enabled or not music_id:
            return 0
        recipients = self._announcer.recipients(event.city)
        for session in recipients:
            session.play_music(music_id)
        return len(recipients)


def _weather_name(weather_type: int) -> str:
    try:
        return WeatherState(weather_type).name.lower()
    except ValueError:
        return str(weather_type)
