"""In-process world — scenes, actors, sessions and bots held in memory.

Used by the standalone host (``main.py``) and by the tests.  Actors move
in straight lines at a fixed speed when ``MemoryWorld.advance`` is
called; nothing fights on its own, so deaths are driven by ``kill()``.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator

from citysiege.models.actor import ReactState
from citysiege.models.city import Faction
from citysiege.models.geometry import Point
from citysiege.util.constants import FACTION_TEMPLATE_NEUTRAL
from citysiege.util.errors import InvalidPosition

log = logging.getLogger(__name__)

DEFAULT_SPEED = 7.0
"""Movement speed in world units per second."""


def _step_towards(position: Point, target: Point, distance: float) -> tuple[Point, bool]:
    remaining = position.distance_to(target)
    if remaining <= distance or remaining == 0:
        return target, True
    ratio = distance / remaining
    return Point(
        position.x + (target.x - position.x) * ratio,
        position.y + (target.y - position.y) * ratio,
        position.z + (target.z - position.z) * ratio,
    ), False


# -- Actors ----------------------------------------------------------------

@dataclass(eq=False)
class MemoryActor:
    """A native actor living in a :class:`MemoryScene`."""

    identity: int
    template_id: int
    scene: MemoryScene
    position: Point
    name: str = ""
    max_health: float = 100.0
    health: float = 100.0
    alive: bool = True
    faction_template: int = FACTION_TEMPLATE_NEUTRAL
    react_state: ReactState = ReactState.AGGRESSIVE
    level: int = 1
    scale: float = 1.0
    speed: float = DEFAULT_SPEED
    destination: Point | None = None
    engaged: bool = False
    home: Point | None = None
    said: list[str] = field(default_factory=list)
    move_orders: list[Point] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"Creature {self.template_id}"
        if self.home is None:
            self.home = self.position

    @property
    def is_alive(self) -> bool:
        return self.alive

    @property
    def health_pct(self) -> float:
        return 100.0 * self.health / self.max_health if self.max_health else 0.0

    @property
    def in_combat(self) -> bool:
        return self.alive and self.engaged

    @property
    def is_moving(self) -> bool:
        return self.alive and self.destination is not None

    def say(self, text: str) -> None:
        self.said.append(text)
        log.debug("%s yells: %s", self.name, text)

    def despawn(self, delay: float = 0.0) -> None:
        self.scene.remove_actor(self.identity, delay)

    def respawn(self) -> None:
        self.alive = True
        self.health = self.max_health
        self.engaged = False
        self.destination = None
        self.position = self.home

    def set_faction(self, faction_template: int) -> None:
        self.faction_template = faction_template

    def set_react_state(self, state: ReactState) -> None:
        self.react_state = state

    def set_level(self, level: int) -> None:
        self.level = level

    def set_scale(self, scale: float) -> None:
        self.scale = scale

    def move_to(self, point: Point, walk: bool = False) -> None:
        if not self.alive:
            return
        self.destination = point
        self.move_orders.append(point)

    def damage(self, amount: float) -> None:
        self.health = max(0.0, self.health - amount)
        if self.health <= 0:
            self.kill()

    def kill(self) -> None:
        self.alive = False
        self.health = 0.0
        self.engaged = False
        self.destination = None

    def step(self, dt: float) -> None:
        if not self.is_moving:
            return
        self.position, arrived = _step_towards(self.position, self.destination, self.speed * dt)
        if arrived:
            self.destination = None


# -- Scenes ----------------------------------------------------------------

class MemoryScene:
    """One map with its actors and zone weather.

    Args:
        map_id: Region id.
        terrain: Optional ``(x, y) -> height`` function; returning None
            means no ground there.  Without one the hint height is used.
        ids: Shared identity generator.
    """

    def __init__(self, map_id: int,
                 terrain: Callable[[float, float], float | None] | None = None,
                 ids: Iterator[int] | None = None) -> None:
        self.map_id = map_id
        self.terrain = terrain
        self.weather: tuple[int, float] = (0, 0.0)
        self.clock = 0.0
        self.fail_spawns = 0
        self._ids = ids or itertools.count(1)
        self._actors: dict[int, MemoryActor] = {}
        self._pending_despawns: dict[int, float] = {}

    # -- Scene contract ------------------------------------------------

    def ground_height(self, x: float, y: float, z_hint: float) -> float:
        if self.terrain is None:
            return z_hint
        height = self.terrain(x, y)
        if height is None:
            raise InvalidPosition(f"No ground at ({x:.2f}, {y:.2f}) on map {self.map_id}")
        return height

    def spawn_actor(self, template_id: int, position: Point,
                    orientation: float = 0.0) -> MemoryActor | None:
        if self.fail_spawns > 0:
            self.fail_spawns -= 1
            return None
        actor = MemoryActor(next(self._ids), template_id, self, position)
        self._actors[actor.identity] = actor
        return actor

    def get_actor(self, identity: int) -> MemoryActor | None:
        return self._actors.get(identity)

    def find_actors_by_template(self, template_id: int, near: Point,
                                radius: float) -> list[MemoryActor]:
        return [
            a for a in self._actors.values()
            if a.template_id == template_id and a.position.distance_to(near) <= radius
        ]

    def weather_at(self, point: Point) -> tuple[int, float]:
        return self.weather

    def set_weather(self, point: Point, weather_type: int, grade: float) -> None:
        self.weather = (weather_type, grade)

    # -- Host side -----------------------------------------------------

    def add_actor(self, template_id: int, position: Point, name: str = "",
                  max_health: float = 100.0) -> MemoryActor:
        """Place a persistent actor such as a city leader."""
        actor = MemoryActor(next(self._ids), template_id, self, position,
                            name=name, max_health=max_health, health=max_health)
        self._actors[actor.identity] = actor
        return actor

    def remove_actor(self, identity: int, delay: float = 0.0) -> None:
        if delay > 0:
            self._pending_despawns[identity] = self.clock + delay
            return
        self._actors.pop(identity, None)
        self._pending_despawns.pop(identity, None)

    @property
    def actors(self) -> list[MemoryActor]:
        return list(self._actors.values())

    def advance(self, dt: float) -> None:
        self.clock += dt
        for identity, due in list(self._pending_despawns.items()):
            if self.clock >= due:
                self.remove_actor(identity)
        for actor in list(self._actors.values()):
            actor.step(dt)


class MemoryWorld:
    """Collection of scenes sharing one identity space."""

    def __init__(self, map_ids: list[int] | None = None) -> None:
        self._ids = itertools.count(1)
        self._scenes: dict[int, MemoryScene] = {}
        for map_id in map_ids or []:
            self.add_scene(map_id)
        self.bots: MemoryBotIntegration | None = None

    def add_scene(self, map_id: int,
                  terrain: Callable[[float, float], float | None] | None = None) -> MemoryScene:
        scene = MemoryScene(map_id, terrain, self._ids)
        self._scenes[map_id] = scene
        return scene

    def find_scene(self, map_id: int) -> MemoryScene | None:
        return self._scenes.get(map_id)

    def advance(self, dt: float) -> None:
        for scene in self._scenes.values():
            scene.advance(dt)
        if self.bots is not None:
            self.bots.advance(dt)


# -- Sessions --------------------------------------------------------------

@dataclass
class MemorySession:
    """A connected player that records everything sent to it."""

    name: str
    faction: Faction
    level: int
    map_id: int
    position: Point
    locale: str = "enUS"
    selected_identity: int | None = None
    messages: list[str] = field(default_factory=list)
    music: list[int] = field(default_factory=list)
    honor: int = 0
    money: int = 0

    def send_message(self, text: str) -> None:
        self.messages.append(text)

    def play_music(self, music_id: int) -> None:
        self.music.append(music_id)

    def grant_honor(self, amount: int) -> None:
        self.honor += amount

    def modify_money(self, copper: int) -> None:
        self.money += copper


class MemoryAudience:
    def __init__(self, sessions: list[MemorySession] | None = None) -> None:
        self._sessions: list[MemorySession] = list(sessions or [])

    def add(self, session: MemorySession) -> MemorySession:
        self._sessions.append(session)
        return session

    def sessions(self) -> list[MemorySession]:
        return list(self._sessions)

    def find_session(self, name: str) -> MemorySession | None:
        key = name.lower()
        for session in self._sessions:
            if session.name.lower() == key:
                return session
        return None


# -- Bots ------------------------------------------------------------------

@dataclass(eq=False)
class MemoryBot:
    """A bot player with a travel target instead of path finding."""

    identity: int
    name: str
    faction: Faction
    level: int
    map_id: int
    position: Point
    orientation: float = 0.0
    alive: bool = True
    in_world: bool = True
    in_instance: bool = False
    in_group: bool = False
    is_teleporting: bool = False
    engaged: bool = False
    pvp: bool = False
    speed: float = DEFAULT_SPEED
    strategies: set[str] = field(default_factory=lambda: {"rpg"})
    travel_target: Point | None = None
    teleports: list[tuple[int, Point]] = field(default_factory=list)

    @property
    def is_alive(self) -> bool:
        return self.alive

    @property
    def in_combat(self) -> bool:
        return self.alive and self.engaged

    @property
    def is_traveling(self) -> bool:
        return self.alive and self.travel_target is not None

    @property
    def is_pvp(self) -> bool:
        return self.pvp

    def set_pvp(self, enabled: bool) -> None:
        self.pvp = enabled

    def has_strategy(self, name: str) -> bool:
        return name in self.strategies

    def change_strategy(self, change: str) -> None:
        """Apply a ``+name,-other`` strategy change string."""
        for token in change.split(","):
            token = token.strip()
            if token.startswith("+"):
                self.strategies.add(token[1:])
            elif token.startswith("-"):
                self.strategies.discard(token[1:])

    def teleport(self, map_id: int, point: Point, orientation: float = 0.0) -> None:
        self.map_id = map_id
        self.position = point
        self.orientation = orientation
        self.travel_target = None
        self.teleports.append((map_id, point))

    def resurrect(self) -> None:
        self.alive = True

    def stop_combat(self) -> None:
        self.engaged = False

    def set_travel_target(self, point: Point) -> None:
        if self.alive:
            self.travel_target = point

    def kill(self) -> None:
        self.alive = False
        self.engaged = False
        self.travel_target = None

    def step(self, dt: float) -> None:
        if not self.is_traveling:
            return
        self.position, arrived = _step_towards(self.position, self.travel_target, self.speed * dt)
        if arrived:
            self.travel_target = None


class MemoryBotIntegration:
    """Bot subsystem backed by a list of :class:`MemoryBot`."""

    available = True

    def __init__(self, bots: list[MemoryBot] | None = None) -> None:
        self._bots: dict[int, MemoryBot] = {b.identity: b for b in bots or []}

    def add(self, bot: MemoryBot) -> MemoryBot:
        self._bots[bot.identity] = bot
        return bot

    def candidates(self) -> list[MemoryBot]:
        return list(self._bots.values())

    def find(self, identity: int) -> MemoryBot | None:
        return self._bots.get(identity)

    def advance(self, dt: float) -> None:
        for bot in self._bots.values():
            bot.step(dt)
