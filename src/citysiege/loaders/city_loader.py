"""City loader — built-in city table plus per-city option overrides.

Recognised per-city keys (``<City>`` is the display name without spaces)::

    CitySiege.Stormwind.Enabled: true
    CitySiege.Stormwind.SpawnX: -9161.16      # also SpawnY / SpawnZ
    CitySiege.Stormwind.LeaderX: -8442.578    # also LeaderY / LeaderZ
    CitySiege.Stormwind.WaypointCount: 2
    CitySiege.Stormwind.Waypoint1.X: -9000.0  # 1-based, also .Y / .Z
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from citysiege.loaders.config_loader import DEFAULT_CONFIG_PATH, coerce, load_options, option
from citysiege.models.city import City, Faction
from citysiege.models.geometry import Point

log = logging.getLogger(__name__)

# name, faction, map, center, spawn, leader (None = center), leader template
_CITY_TABLE: list[tuple[str, Faction, int, tuple, tuple, tuple | None, int]] = [
    ("Stormwind", Faction.ALLIANCE, 0,
     (-8913.23, 554.633, 93.7944), (-9161.16, 353.365, 88.117),
     (-8442.578, 334.6064, 122.476685), 29611),
    ("Ironforge", Faction.ALLIANCE, 0,
     (-4981.25, -881.542, 501.660), (-5174.09, -594.361, 397.853), None, 2784),
    ("Darnassus", Faction.ALLIANCE, 1,
     (9947.52, 2482.73, 1316.21), (9887.36, 1856.49, 1317.14), None, 7999),
    ("Exodar", Faction.ALLIANCE, 530,
     (-3864.92, -11643.7, -137.644), (-4080.80, -12193.2, 1.712), None, 17468),
    ("Orgrimmar", Faction.HORDE, 1,
     (1633.75, -4439.39, 15.4396), (1114.96, -4374.63, 25.813), None, 4949),
    ("Undercity", Faction.HORDE, 0,
     (1633.75, 240.167, -43.1034), (1982.26, 226.674, 35.951), None, 10181),
    ("Thunderbluff", Faction.HORDE, 1,
     (-1043.11, 285.809, 135.165), (-1558.61, -5.071, 5.384), None, 3057),
    ("Silvermoon", Faction.HORDE, 530,
     (9338.74, -7277.27, 13.7014), (9230.47, -6962.67, 5.004), None, 16802),
]


def default_cities() -> list[City]:
    """The built-in cities with no overrides applied."""
    cities = []
    for name, faction, map_id, center, spawn, leader, template in _CITY_TABLE:
        cities.append(City(
            name=name,
            faction=faction,
            map_id=map_id,
            center=Point(*center),
            spawn=Point(*spawn),
            leader=Point(*(leader or center)),
            leader_template=template,
        ))
    return cities


def _point_override(options: dict[str, Any], prefix: str, base: Point) -> Point:
    coords = []
    for axis, current in (("X", base.x), ("Y", base.y), ("Z", base.z)):
        raw = option(options, f"{prefix}{axis}")
        try:
            coords.append(current if raw is None else float(raw))
        except (TypeError, ValueError):
            log.warning("Invalid coordinate %r for %s%s", raw, prefix, axis)
            coords.append(current)
    return Point(*coords)


def _waypoints(options: dict[str, Any], name: str) -> tuple[Point, ...]:
    try:
        count = int(option(options, f"{name}.WaypointCount", 0) or 0)
    except (TypeError, ValueError):
        log.warning("Invalid WaypointCount for %s", name)
        return ()

    points = []
    for n in range(1, count + 1):
        wp = _point_override(options, f"{name}.Waypoint{n}.", Point(0.0, 0.0, 0.0))
        if wp.is_origin:
            log.debug("Skipping empty waypoint %d for %s", n, name)
            continue
        points.append(wp)
    return tuple(points)


def apply_overrides(city: City, options: dict[str, Any]) -> City:
    """Return *city* with its per-city options applied."""
    enabled = city.enabled
    raw = option(options, f"{city.name}.Enabled")
    if raw is not None:
        try:
            enabled = coerce(raw, True)
        except ValueError:
            log.warning("Invalid value %r for %s.Enabled", raw, city.name)
    return replace(
        city,
        enabled=enabled,
        spawn=_point_override(options, f"{city.name}.Spawn", city.spawn),
        leader=_point_override(options, f"{city.name}.Leader", city.leader),
        waypoints=_waypoints(options, city.name),
    )


def cities_from_options(options: dict[str, Any]) -> list[City]:
    cities = [apply_overrides(city, options) for city in default_cities()]
    for city in cities:
        log.debug("City %s: %d waypoints, enabled=%s", city.name, len(city.waypoints), city.enabled)
    return cities


def load_cities(path: str | Path = DEFAULT_CONFIG_PATH) -> list[City]:
    """Load the city list with overrides from a YAML option file."""
    return cities_from_options(load_options(path))


def find_city(cities: list[City], name: str) -> City | None:
    """Case-insensitive lookup by name."""
    key = name.strip().lower()
    for city in cities:
        if city.key == key:
            return city
    return None
