"""Admin command handlers — central registry of ``.citysiege`` subcommands.

Each handler is an async function receiving the argument list and the
calling session, returning the reply lines.  Rejections are plain
sentences; handlers never raise for user mistakes.

To add a subcommand:

1. Write the handler function below.
2. Register it in :func:`register_all_handlers` at the bottom.
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

from citysiege.engine.formation import ground_point
from citysiege.loaders.city_loader import load_cities
from citysiege.loaders.config_loader import load_siege_config
from citysiege.models.geometry import Point
from citysiege.models.siege import Outcome, SiegeEvent, SiegePhase
from citysiege.util.constants import TEST_MARKER_LIFETIME, WAYPOINT_MARKER_TEMPLATE
from citysiege.util.locale import Localizer
from citysiege.util.text import COLOR_END, COLOR_GREEN, COLOR_RED, SIEGE_TAG, SIEGE_TAG_GOOD

if TYPE_CHECKING:
    from citysiege.main import Services
    from citysiege.network.router import Router
    from citysiege.world.interfaces import Scene, Session

log = logging.getLogger(__name__)

# Module-level reference set by register_all_handlers()
_services: Optional[Services] = None

LOGIN_REQUIRED = "You must be logged in to use this command."


def _svc() -> Services:
    """Get the Services container. Raises if not initialized."""
    assert _services is not None, "commands: services not initialized"
    return _services


def _now() -> float:
    return _svc().clock()


# ===================================================================
# Siege control
# ===================================================================

async def handle_start(args: list[str], caller: Optional[Session]) -> list[str]:
    """``start [city]`` — force a siege, random city when none is given."""
    result = _svc().orchestrator.start_siege(args[0] if args else None, _now())
    if isinstance(result, str):
        return [result]
    log.info("Siege at %s started by %s", result.city.name, caller.name if caller else "admin")
    return [f"Siege of {result.city.name} started! Combat begins in "
            f"{int(result.narrative_seconds)} seconds."]


async def handle_stop(args: list[str], caller: Optional[Session]) -> list[str]:
    """``stop <city> <alliance|horde>`` — end a siege with a chosen winner."""
    orchestrator = _svc().orchestrator
    if not orchestrator.active_events:
        return ["No active siege events."]
    if len(args) < 2:
        return ["Usage: .citysiege stop <cityname> <alliance|horde>",
                "Specify which faction wins the siege."]
    result = orchestrator.stop_siege(args[0], args[1], _now())
    if isinstance(result, str):
        return [result]
    winner = result.winning_faction.display_name
    if result.outcome is Outcome.DEFENDERS:
        return [f"{SIEGE_TAG_GOOD} The {winner} has successfully defended "
                f"{result.city.name}! Victory to the defenders!"]
    return [f"{SIEGE_TAG} The {winner} has conquered {result.city.name}! The city has fallen!"]


async def handle_cleanup(args: list[str], caller: Optional[Session]) -> list[str]:
    """``cleanup [city]`` — silently remove sieges and their actors."""
    result = _svc().orchestrator.cleanup(args[0] if args else None, _now())
    if isinstance(result, str):
        return [result]
    return [f"Cleaned up siege creatures in {name}" for name in result]


# ===================================================================
# Status queries
# ===================================================================

def _leader_line(event: SiegeEvent) -> str:
    if event.objective_id is None:
        return "    Leader: NOT RESOLVED (attackers win by default)"
    leader = _svc().orchestrator.machine.objective_handle(event)
    if leader is None:
        return f"    Leader: {event.objective_id} - NOT FOUND"
    state = "ALIVE" if leader.is_alive else "DEAD"
    return f"    Leader: {leader.name} ({event.objective_id}) - {state}, HP: {leader.health_pct:.1f}%"


async def handle_status(args: list[str], caller: Optional[Session]) -> list[str]:
    """``status`` — module state, active sieges and the next automatic one."""
    svc = _svc()
    orchestrator = svc.orchestrator
    now = _now()
    active = orchestrator.active_events
    lines = [
        "=== City Siege Status ===",
        f"Module Enabled: {'Yes' if orchestrator.config.enabled else 'No'}",
        f"Active Sieges: {len(active)}",
    ]
    if active:
        lines.append("--- Active Siege Events ---")
    for event in active:
        lines.append(f"  {event.city.name} - {len(event.directory)} creatures, "
                     f"{int(event.remaining(now) // 60)} minutes remaining")
        lines.append(_leader_line(event))
        lines.append("    Phase: Cinematic (RP)" if event.phase is SiegePhase.NARRATIVE
                     else "    Phase: Combat")
    until_next = orchestrator.seconds_until_next(now)
    if until_next is not None and orchestrator.config.enabled:
        lines.append(f"Next auto-siege in: {int(until_next // 60)} minutes")
    return lines


async def handle_info(args: list[str], caller: Optional[Session]) -> list[str]:
    """``info`` — path state of the caller's selected unit."""
    if caller is None:
        return [LOGIN_REQUIRED]
    if caller.selected_identity is None:
        return ["You must select a unit to use this command."]
    svc = _svc()
    located = svc.orchestrator.locate_actor(caller.selected_identity)
    if located is None:
        return ["Selected unit is not part of any active siege."]
    event, entry = located

    if entry.is_bot:
        unit = svc.bots.find(entry.identity)
    else:
        scene = svc.world.find_scene(event.city.map_id)
        unit = None if scene is None else scene.get_actor(entry.identity)
    if unit is None:
        return ["Selected unit is not part of any active siege."]

    path = event.city.path
    target = path.target_for(entry.progress)
    position = unit.position
    return [
        f"{COLOR_GREEN}[City Siege Info]{COLOR_END} {unit.name} in {event.city.name}",
        f"Type: {'Defender' if entry.is_defender else 'Attacker'} "
        f"{'Playerbot' if entry.is_bot else 'NPC'} | Current Waypoint: {entry.progress.index} "
        f"| Target: {path.describe_target(entry.progress)}",
        f"Distance to target: {position.distance_to(target):.1f} yards | "
        f"Target coords: ({target.x:.1f}, {target.y:.1f}, {target.z:.1f})",
        f"Unit position: ({position.x:.1f}, {position.y:.1f}, {position.z:.1f})",
    ]


async def handle_distance(args: list[str], caller: Optional[Session]) -> list[str]:
    """``distance [city]`` — how far the caller is from city centers."""
    if caller is None:
        return [LOGIN_REQUIRED]
    orchestrator = _svc().orchestrator
    position = caller.position
    if not args:
        lines = [f"{SIEGE_TAG_GOOD} Distance to city centers:"]
        for city in orchestrator.cities:
            c = city.center
            lines.append(f"  {city.name}: {position.distance_to(c):.1f} yards "
                         f"(center: {c.x:.1f}, {c.y:.1f}, {c.z:.1f})")
        return lines

    city = orchestrator.find_city(args[0])
    if city is None:
        return [f"Invalid city name. Available: {orchestrator.city_names}"]
    radius = orchestrator.config.announce_radius
    distance = position.distance_to(city.center)
    in_range = radius <= 0 or (caller.map_id == city.map_id and distance <= radius)
    c = city.center
    return [
        f"{SIEGE_TAG_GOOD} Distance to {city.name} center: {distance:.1f} yards",
        f"Center coords: ({c.x:.1f}, {c.y:.1f}, {c.z:.1f})",
        f"Announce radius: {int(radius)} yards",
        f"{COLOR_GREEN}You ARE in range{COLOR_END}" if in_range
        else f"{COLOR_RED}You are OUT OF RANGE{COLOR_END}",
    ]


# ===================================================================
# Waypoint visualization
# ===================================================================

def _place_marker(scene: Scene, point: Point, label: str) -> tuple[int | None, str]:
    handle = scene.spawn_actor(WAYPOINT_MARKER_TEMPLATE, point)
    return (handle.identity if handle else None,
            f"{label}: {point} - {'OK' if handle else 'FAILED'}")


async def handle_waypoints(args: list[str], caller: Optional[Session]) -> list[str]:
    """``waypoints <city>`` — toggle marker actors along a city's path."""
    svc = _svc()
    orchestrator = svc.orchestrator
    if not args:
        return ["Usage: .citysiege waypoints <cityname>",
                "Shows or hides waypoint visualization for a city.",
                f"Available cities: {orchestrator.city_names}"]
    city = orchestrator.find_city(args[0])
    if city is None:
        return [f"Unknown city. Use: {orchestrator.city_names}"]
    scene = svc.world.find_scene(city.map_id)
    if scene is None:
        return ["Could not find map for this city."]

    existing = svc.markers.pop(city.key, None)
    if existing is not None:
        for identity in existing:
            handle = scene.get_actor(identity)
            if handle is not None:
                handle.despawn()
        return [f"Waypoint visualization hidden for {city.name}"]

    spawned: list[int] = []
    lines = []
    identity, line = _place_marker(scene, city.spawn, "Spawn Point")
    lines.append(line)
    if identity is not None:
        spawned.append(identity)

    lines.append(f"City has {len(city.waypoints)} waypoints configured.")
    for i, waypoint in enumerate(city.waypoints, start=1):
        identity, line = _place_marker(scene, waypoint, f"  WP {i}")
        lines.append(line)
        if identity is not None:
            spawned.append(identity)

    identity, line = _place_marker(scene, city.leader, "Leader Position")
    lines.append(line)
    if identity is not None:
        spawned.append(identity)

    svc.markers[city.key] = spawned
    lines.append(f"Total markers: {len(spawned)} (1 Spawn + {len(city.waypoints)} "
                 f"Waypoints + 1 Leader)")
    return lines


async def handle_testwaypoint(args: list[str], caller: Optional[Session]) -> list[str]:
    """``testwaypoint`` — drop a short-lived marker at the caller's feet."""
    if caller is None:
        return [LOGIN_REQUIRED]
    scene = _svc().world.find_scene(caller.map_id)
    if scene is None:
        return ["Could not get map."]
    point = ground_point(scene, caller.position).offset(dz=1.0)
    coords = f"Coordinates: {point}"
    handle = scene.spawn_actor(WAYPOINT_MARKER_TEMPLATE, point)
    if handle is None:
        return ["Failed to spawn test waypoint marker at this location.", coords,
                "This location may not be valid for spawning creatures."]
    handle.despawn(TEST_MARKER_LIFETIME)
    return [f"Test waypoint marker spawned for {int(TEST_MARKER_LIFETIME)} seconds.", coords]


# ===================================================================
# Configuration
# ===================================================================

async def handle_reload(args: list[str], caller: Optional[Session]) -> list[str]:
    """``reload`` — re-read the option file and the locale overrides."""
    svc = _svc()
    config = load_siege_config(svc.config_path)
    cities = load_cities(svc.config_path)
    localizer = Localizer.from_directory(config.locale_dir)
    svc.orchestrator.reload(config, cities, localizer)
    svc.config = config
    lines = [
        f"{SIEGE_TAG_GOOD} Configuration reloaded successfully!",
        "Note: Active sieges keep their city layout. New sieges use the updated configuration.",
        config.status_line,
        f"Locales loaded: {', '.join(localizer.locales)}",
        "Waypoints loaded:",
    ]
    lines += [f"  {c.name}: {len(c.waypoints)} waypoints" for c in cities if c.waypoints]
    return lines


# ===================================================================
# Registration
# ===================================================================

def register_all_handlers(router: Router, services: Services) -> None:
    """Register every subcommand with *router*."""
    global _services
    _services = services

    router.register("start", handle_start)
    router.register("stop", handle_stop)
    router.register("cleanup", handle_cleanup)
    router.register("status", handle_status)
    router.register("info", handle_info)
    router.register("distance", handle_distance)
    router.register("waypoints", handle_waypoints)
    router.register("testwaypoint", handle_testwaypoint)
    router.register("reload", handle_reload)
    log.info("Registered %d admin commands", len(router.registered_commands))
