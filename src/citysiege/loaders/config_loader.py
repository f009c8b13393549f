"""Siege configuration — loads tunables from config/citysiege.yaml.

The file is a flat mapping of dotted option keys::

    CitySiege.Enabled: true
    CitySiege.TimerMin: 120
    CitySiege.Stormwind.WaypointCount: 2

``load_siege_config`` maps the global keys onto ``SiegeConfig``; per-city
keys are consumed by ``loaders/city_loader.py``.  Every field has a
default so the engine runs without the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/citysiege.yaml"
OPTION_PREFIX = "CitySiege."

_DEFAULT_LEADER_SPAWN_YELL = "This city will fall before our might!"
_DEFAULT_COMBAT_YELLS = (
    "Your defenses crumble!;This city will burn!;Face your doom!;"
    "None can stand against us!;Your leaders will fall!"
)
_DEFAULT_RP_ALLIANCE = (
    "Citizens of {CITY}, your time has come! We march under the banner of the Alliance!;"
    "{LEADER}, your people cry out for mercy, but you have shown none to ours!;"
    "We have crossed mountains and seas to bring justice to {CITY}. Surrender now, or face annihilation!;"
    "The Light guides our blades, and the might of Stormwind stands behind us. Your defenses will crumble!;"
    "This ends today! {LEADER}, come forth and face the Alliance, or watch {CITY} burn!"
    "|The Alliance has gathered its greatest heroes for this assault on {CITY}. You cannot stand against us!;"
    "{LEADER}, your leadership has made the Horde enemies it cannot defeat! We will tear down these walls!;"
    "Too long have you raided our villages and slaughtered our people. Today, we bring the war to {CITY}!;"
    "Your shamans' magic cannot protect you. Our priests and paladins have blessed this army!;"
    "Prepare to face the wrath of the Alliance! {LEADER}, your reign over {CITY} ends here and now!"
    "|By order of King Varian Wrynn, {CITY} is to be taken! Resistance is futile!;"
    "{LEADER}! Come forth and face us, or hide like a coward while your people suffer!;"
    "The Horde's reign of terror ends here at {CITY}. We will show no mercy to those who threaten peace!;"
    "Our siege engines are ready. The walls of {CITY} mean nothing to the might of the Alliance!;"
    "For every innocent killed by Horde aggression, {LEADER}, you will pay with your life!"
)
_DEFAULT_RP_HORDE = (
    "The Horde has come to claim {CITY}! Your precious Alliance ends today!;"
    "{LEADER}, you have oppressed our people for the last time! Come out and face your fate!;"
    "We are not savages - we are warriors! And today, we show {CITY} what true strength means!;"
    "Your guards are weak. Your walls are weak. {LEADER} hides in the throne room while we stand at the gates!;"
    "Blood and honor! Today we prove that the Horde is the superior force in Azeroth!"
    "|Citizens of {CITY}, flee while you can! We have come for your leaders, not for you!;"
    "{LEADER}! Your reign of tyranny over {CITY} ends today! The throne will belong to the Horde!;"
    "You call us monsters, but it is YOU who started this war! We finish it today at {CITY}!;"
    "The spirits of our ancestors guide us. No amount of Light magic will save {CITY} from our wrath!;"
    "Lok'tar Ogar! {LEADER}, today you fall, and the Horde claims {CITY}!"
    "|The Warchief has sent his finest warriors to end Alliance tyranny at {CITY} once and for all!;"
    "Your pitiful city guard cannot stop the Horde war machine! {LEADER}, your time has come!;"
    "We march for honor! We march for glory! We march to prove that the Horde will take {CITY}!;"
    "Every siege tower, every warrior, every drop of blood spilled today at {CITY} - it all leads to YOUR defeat!;"
    "{LEADER}, the Alliance has grown soft under your leadership. Today at {CITY}, the Horde reminds you why you should fear us!"
)


@dataclass
class SiegeConfig:
    """All tunable siege constants.

    Field names map to option keys through ``OPTION_KEYS``.
    """

    # -- General -----------------------------------------------------
    enabled: bool = True
    debug_mode: bool = False
    timer_min_minutes: int = 120
    timer_max_minutes: int = 240
    event_duration_minutes: int = 30
    allow_multiple_cities: bool = False
    announce_radius: float = 1500.0
    minimum_level: int = 1

    # -- Spawn counts ------------------------------------------------
    spawn_leaders: int = 1
    spawn_mini_bosses: int = 2
    spawn_elites: int = 5
    spawn_minions: int = 15

    # -- Creature templates ------------------------------------------
    alliance_mini_boss: int = 17921
    alliance_elite: int = 17920
    alliance_minion: int = 17919
    horde_mini_boss: int = 17934
    horde_elite: int = 17933
    horde_minion: int = 17932
    alliance_leaders: list[int] = field(default_factory=lambda: [29611, 2784, 7999, 17468])
    horde_leaders: list[int] = field(default_factory=lambda: [4949, 3057, 10181, 16802])

    # -- Behaviour ---------------------------------------------------
    aggro_players: bool = True
    aggro_npcs: bool = True

    # -- Defenders ---------------------------------------------------
    defenders_enabled: bool = True
    defenders_count: int = 10
    alliance_defender: int = 17919
    horde_defender: int = 17932

    # -- Levels & scale ----------------------------------------------
    level_leader: int = 80
    level_mini_boss: int = 80
    level_elite: int = 75
    level_minion: int = 70
    level_defender: int = 70
    scale_leader: float = 1.6
    scale_mini_boss: float = 1.3

    # -- Narrative ---------------------------------------------------
    cinematic_delay: int = 150
    yell_frequency: int = 30
    yell_leader_spawn: str = _DEFAULT_LEADER_SPAWN_YELL
    yell_combat: str = _DEFAULT_COMBAT_YELLS
    rp_alliance: str = _DEFAULT_RP_ALLIANCE
    rp_horde: str = _DEFAULT_RP_HORDE
    message_siege_start: str = ""
    message_siege_end: str = ""
    message_reward: str = ""

    # -- Respawn -----------------------------------------------------
    respawn_enabled: bool = True
    respawn_leader: int = 300
    respawn_mini_boss: int = 180
    respawn_elite: int = 120
    respawn_minion: int = 60
    respawn_defender: int = 45

    # -- Rewards -----------------------------------------------------
    reward_on_defense: bool = True
    reward_honor: int = 100
    reward_gold_base: int = 5000
    reward_gold_per_level: int = 5000

    # -- Bots --------------------------------------------------------
    playerbots_enabled: bool = False
    playerbots_min_level: int = 70
    playerbots_max_defenders: int = 20
    playerbots_max_attackers: int = 20
    playerbots_respawn_delay: int = 30

    # -- Ambience ----------------------------------------------------
    weather_enabled: bool = True
    weather_type: int = 4
    weather_grade: float = 0.8
    music_enabled: bool = True
    music_rp: int = 11803
    music_combat: int = 11804
    music_victory: int = 16039
    music_defeat: int = 14127

    # -- Engine ------------------------------------------------------
    status_interval: int = 300
    grace_period: int = 60
    tick_interval_ms: int = 1000

    # -- Admin surface -----------------------------------------------
    admin_host: str = "0.0.0.0"
    admin_port: int = 8080
    admin_secret: str = "citysiege-admin-secret-change-me"
    locale_dir: str = "config/locale"

    # -- Derived -----------------------------------------------------

    @property
    def event_duration_seconds(self) -> float:
        return self.event_duration_minutes * 60.0

    @property
    def status_line(self) -> str:
        return (
            f"Status: {'Enabled' if self.enabled else 'Disabled'} | "
            f"Debug: {'On' if self.debug_mode else 'Off'} | "
            f"Timer: {self.timer_min_minutes}-{self.timer_max_minutes} min | "
            f"Duration: {self.event_duration_minutes} min"
        )


OPTION_KEYS: dict[str, str] = {
    "enabled": "Enabled",
    "debug_mode": "DebugMode",
    "timer_min_minutes": "TimerMin",
    "timer_max_minutes": "TimerMax",
    "event_duration_minutes": "EventDuration",
    "allow_multiple_cities": "AllowMultipleCities",
    "announce_radius": "AnnounceRadius",
    "minimum_level": "MinimumLevel",
    "spawn_leaders": "SpawnCount.Leaders",
    "spawn_mini_bosses": "SpawnCount.MiniBosses",
    "spawn_elites": "SpawnCount.Elites",
    "spawn_minions": "SpawnCount.Minions",
    "alliance_mini_boss": "Creature.Alliance.MiniBoss",
    "alliance_elite": "Creature.Alliance.Elite",
    "alliance_minion": "Creature.Alliance.Minion",
    "horde_mini_boss": "Creature.Horde.MiniBoss",
    "horde_elite": "Creature.Horde.Elite",
    "horde_minion": "Creature.Horde.Minion",
    "alliance_leaders": "Creature.Alliance.Leaders",
    "horde_leaders": "Creature.Horde.Leaders",
    "aggro_players": "AggroPlayers",
    "aggro_npcs": "AggroNPCs",
    "defenders_enabled": "Defenders.Enabled",
    "defenders_count": "Defenders.Count",
    "alliance_defender": "Creature.Alliance.Defender",
    "horde_defender": "Creature.Horde.Defender",
    "level_leader": "Level.Leader",
    "level_mini_boss": "Level.MiniBoss",
    "level_elite": "Level.Elite",
    "level_minion": "Level.Minion",
    "level_defender": "Level.Defender",
    "scale_leader": "Scale.Leader",
    "scale_mini_boss": "Scale.MiniBoss",
    "cinematic_delay": "CinematicDelay",
    "yell_frequency": "YellFrequency",
    "yell_leader_spawn": "Yell.LeaderSpawn",
    "yell_combat": "Yell.Combat",
    "rp_alliance": "RP.Alliance",
    "rp_horde": "RP.Horde",
    "message_siege_start": "Message.SiegeStart",
    "message_siege_end": "Message.SiegeEnd",
    "message_reward": "Message.Reward",
    "respawn_enabled": "Respawn.Enabled",
    "respawn_leader": "Respawn.LeaderTime",
    "respawn_mini_boss": "Respawn.MiniBossTime",
    "respawn_elite": "Respawn.EliteTime",
    "respawn_minion": "Respawn.MinionTime",
    "respawn_defender": "Respawn.DefenderTime",
    "reward_on_defense": "RewardOnDefense",
    "reward_honor": "RewardHonor",
    "reward_gold_base": "RewardGoldBase",
    "reward_gold_per_level": "RewardGoldPerLevel",
    "playerbots_enabled": "Playerbots.Enabled",
    "playerbots_min_level": "Playerbots.MinLevel",
    "playerbots_max_defenders": "Playerbots.MaxDefenders",
    "playerbots_max_attackers": "Playerbots.MaxAttackers",
    "playerbots_respawn_delay": "Playerbots.RespawnDelay",
    "weather_enabled": "Weather.Enabled",
    "weather_type": "Weather.Type",
    "weather_grade": "Weather.Grade",
    "music_enabled": "Music.Enabled",
    "music_rp": "Music.RP",
    "music_combat": "Music.Combat",
    "music_victory": "Music.Victory",
    "music_defeat": "Music.Defeat",
    "status_interval": "StatusInterval",
    "grace_period": "GracePeriod",
    "tick_interval_ms": "TickInterval",
    "admin_host": "Admin.Host",
    "admin_port": "Admin.Port",
    "admin_secret": "Admin.Secret",
    "locale_dir": "LocaleDir",
}


# -- Option parsing --------------------------------------------------------

def load_options(path: str | Path = DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    """Read the raw flat option mapping.

    A missing or empty file yields an empty mapping.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Siege config not found at %s — using defaults", p)
        return {}

    with p.open(encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        log.warning("Siege config %s is not a mapping — using defaults", p)
        return {}

    log.info("Loaded siege config from %s (%d keys)", p, len(raw))
    return {str(k): v for k, v in raw.items()}


def option(options: dict[str, Any], key: str, default: Any = None) -> Any:
    """Look up *key* with or without the ``CitySiege.`` prefix."""
    if OPTION_PREFIX + key in options:
        return options[OPTION_PREFIX + key]
    return options.get(key, default)


def coerce(value: Any, default: Any) -> Any:
    """Convert *value* to the type of *default*.

    Raises:
        ValueError: If the value cannot be converted.
    """
    if isinstance(default, bool):
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"not a boolean: {value!r}")
        return bool(value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    if isinstance(default, list):
        items = value.split(";") if isinstance(value, str) else list(value)
        return [int(item) for item in items if str(item).strip()]
    return "" if value is None else str(value)


def config_from_options(options: dict[str, Any]) -> SiegeConfig:
    """Build a ``SiegeConfig`` from a flat option mapping.

    Malformed values are logged and replaced by the default.
    """
    defaults = SiegeConfig()
    values: dict[str, Any] = {}
    for f in fields(SiegeConfig):
        raw = option(options, OPTION_KEYS[f.name])
        if raw is None:
            continue
        default = getattr(defaults, f.name)
        try:
            values[f.name] = coerce(raw, default)
        except (TypeError, ValueError):
            log.warning("Invalid value %r for %s — using %r", raw, OPTION_KEYS[f.name], default)

    cfg = SiegeConfig(**values)
    if cfg.timer_max_minutes < cfg.timer_min_minutes:
        log.warning("TimerMax (%d) < TimerMin (%d) — using TimerMin for both",
                    cfg.timer_max_minutes, cfg.timer_min_minutes)
        cfg.timer_max_minutes = cfg.timer_min_minutes
    return cfg


def load_siege_config(path: str | Path = DEFAULT_CONFIG_PATH) -> SiegeConfig:
    """Load siege configuration from a YAML file."""
    return config_from_options(load_options(path))
