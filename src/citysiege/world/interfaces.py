"""Host collaborator contracts.

The engine never owns actors or sessions: it reads liveness and position
through these handles fresh on every tick and issues effects through
them.  ``world/memory.py`` is the in-process implementation used by the
standalone host and the tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from citysiege.models.actor import ReactState
    from citysiege.models.city import Faction
    from citysiege.models.geometry import Point


class ActorHandle(Protocol):
    """A native world actor."""

    identity: int
    name: str
    template_id: int

    @property
    def is_alive(self) -> bool: ...
    @property
    def health_pct(self) -> float: ...
    @property
    def position(self) -> Point: ...
    @property
    def in_combat(self) -> bool: ...
    @property
    def is_moving(self) -> bool: ...

    def say(self, text: str) -> None: ...
    def despawn(self, delay: float = 0.0) -> None: ...
    def respawn(self) -> None: ...
    def set_faction(self, faction_template: int) -> None: ...
    def set_react_state(self, state: ReactState) -> None: ...
    def set_level(self, level: int) -> None: ...
    def set_scale(self, scale: float) -> None: ...
    def move_to(self, point: Point, walk: bool = False) -> None: ...


class Scene(Protocol):
    """One loaded region of the world."""

    map_id: int

    def ground_height(self, x: float, y: float, z_hint: float) -> float:
        """Raises ``InvalidPosition`` when no ground is found."""
        ...

    def spawn_actor(self, template_id: int, position: Point,
                    orientation: float = 0.0) -> ActorHandle | None: ...
    def get_actor(self, identity: int) -> ActorHandle | None: ...
    def find_actors_by_template(self, template_id: int, near: Point,
                                radius: float) -> list[ActorHandle]: ...
    def weather_at(self, point: Point) -> tuple[int, float]: ...
    def set_weather(self, point: Point, weather_type: int, grade: float) -> None: ...


class World(Protocol):
    def find_scene(self, map_id: int) -> Scene | None: ...


class Session(Protocol):
    """A connected player (or bot) that can receive announcements."""

    name: str
    locale: str
    faction: Faction
    level: int
    map_id: int
    selected_identity: int | None

    @property
    def position(self) -> Point: ...

    def send_message(self, text: str) -> None: ...
    def play_music(self, music_id: int) -> None: ...
    def grant_honor(self, amount: int) -> None: ...
    def modify_money(self, copper: int) -> None: ...


class Audience(Protocol):
    def sessions(self) -> list[Session]: ...
    def find_session(self, name: str) -> Session | None: ...


class BotHandle(Protocol):
    """An externally controlled bot player."""

    identity: int
    name: str
    faction: Faction
    level: int

    @property
    def is_alive(self) -> bool: ...
    @property
    def in_world(self) -> bool: ...
    @property
    def in_instance(self) -> bool: ...
    @property
    def in_group(self) -> bool: ...
    @property
    def is_teleporting(self) -> bool: ...
    @property
    def in_combat(self) -> bool: ...
    @property
    def is_traveling(self) -> bool: ...
    @property
    def is_pvp(self) -> bool: ...
    @property
    def map_id(self) -> int: ...
    @property
    def position(self) -> Point: ...
    @property
    def orientation(self) -> float: ...

    def set_pvp(self, enabled: bool) -> None: ...
    def has_strategy(self, name: str) -> bool: ...
    def change_strategy(self, change: str) -> None: ...
    def teleport(self, map_id: int, point: Point, orientation: float = 0.0) -> None: ...
    def resurrect(self) -> None: ...
    def stop_combat(self) -> None: ...
    def set_travel_target(self, point: Point) -> None: ...


class Mover(Protocol):
    """What the path driver needs from any moving actor."""

    @property
    def position(self) -> Point: ...
    @property
    def is_alive(self) -> bool: ...
    @property
    def in_combat(self) -> bool: ...
    @property
    def is_moving(self) -> bool: ...

    def issue_move_order(self, point: Point) -> None: ...
