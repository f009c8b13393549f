"""Tests for the path progression driver."""

from __future__ import annotations

import random

from citysiege.engine.path_driver import NativeMover, PathProgressionDriver
from citysiege.models.actor import Side, Tier
from citysiege.models.city import City, Faction
from citysiege.models.geometry import Point
from citysiege.models.siege import SiegeEvent
from citysiege.world.memory import MemoryScene

SPAWN = Point(0.0, 0.0, 0.0)
LEADER = Point(300.0, 0.0, 0.0)
WPS = (Point(100.0, 0.0, 0.0), Point(200.0, 0.0, 0.0))


class _FakeMover:
    def __init__(self, position: Point, alive: bool = True, fighting: bool = False,
                 moving: bool = False) -> None:
        self.position = position
        self.is_alive = alive
        self.in_combat = fighting
        self.is_moving = moving
        self.orders: list[Point] = []

    def issue_move_order(self, point: Point) -> None:
        self.orders.append(point)


def _make_event(waypoints=WPS) -> SiegeEvent:
    city = City(name="Testville", faction=Faction.ALLIANCE, map_id=0, center=LEADER,
                spawn=SPAWN, leader=LEADER, leader_template=1, waypoints=waypoints)
    return SiegeEvent(event_id=1, city=city, started_at=0.0, ends_at=1800.0,
                      narrative_seconds=150.0)


def _make_driver(jitter: float = 0.0) -> PathProgressionDriver:
    return PathProgressionDriver(random.Random(1), jitter=jitter)


class TestDrive:
    def test_far_actor_gets_order_to_current_target(self):
        event = _make_event()
        event.directory.register(1, Tier.MINION, Side.ATTACKER)
        mover = _FakeMover(SPAWN)
        assert _make_driver().drive(event, 1, mover)
        assert mover.orders == [WPS[0]]
        assert event.directory.get(1).progress.index == 0

    def test_arrival_advances_and_orders_next(self):
        event = _make_event()
        event.directory.register(1, Tier.MINION, Side.ATTACKER)
        mover = _FakeMover(Point(95.0, 0.0, 0.0))
        assert _make_driver().drive(event, 1, mover)
        assert event.directory.get(1).progress.index == 1
        assert mover.orders == [WPS[1]]

    def test_defender_walks_backwards(self):
        event = _make_event()
        event.directory.register(1, Tier.DEFENDER, Side.DEFENDER)
        mover = _FakeMover(WPS[1])
        _make_driver().drive(event, 1, mover)
        assert event.directory.get(1).progress.index == 1
        assert mover.orders == [WPS[0]]

    def test_terminal_holds_position(self):
        event = _make_event()
        event.directory.register(1, Tier.MINION, Side.ATTACKER)
        event.directory.advance(1)
        event.directory.advance(1)
        mover = _FakeMover(LEADER)
        assert not _make_driver().drive(event, 1, mover)
        assert mover.orders == []
        assert event.directory.get(1).progress.index == 2

    def test_skips_dead_fighting_or_moving(self):
        event = _make_event()
        event.directory.register(1, Tier.MINION, Side.ATTACKER)
        driver = _make_driver()
        for mover in (_FakeMover(SPAWN, alive=False), _FakeMover(SPAWN, fighting=True),
                      _FakeMover(SPAWN, moving=True)):
            assert not driver.drive(event, 1, mover)
            assert mover.orders == []

    def test_unknown_identity_is_ignored(self):
        event = _make_event()
        assert not _make_driver().drive(event, 42, _FakeMover(SPAWN))

    def test_no_waypoints(self):
        event = _make_event(())
        event.directory.register(1, Tier.MINION, Side.ATTACKER)
        event.directory.register(2, Tier.DEFENDER, Side.DEFENDER)
        a, d = _FakeMover(SPAWN), _FakeMover(LEADER)
        driver = _make_driver()
        driver.drive(event, 1, a)
        driver.drive(event, 2, d)
        assert a.orders == [LEADER]
        assert d.orders == [SPAWN]


class TestStep:
    def test_step_counts_orders(self):
        event = _make_event()
        event.directory.register(1, Tier.MINION, Side.ATTACKER)
        event.directory.register(2, Tier.MINION, Side.ATTACKER)
        movers = {1: _FakeMover(SPAWN), 2: _FakeMover(SPAWN, moving=True)}
        assert _make_driver().step(event, movers) == 1

    def test_initial_orders_ignore_movement_state(self):
        event = _make_event()
        event.directory.register(1, Tier.MINION, Side.ATTACKER)
        event.directory.register(2, Tier.MINION, Side.ATTACKER)
        movers = {1: _FakeMover(SPAWN, moving=True), 2: _FakeMover(SPAWN, alive=False),
                  3: _FakeMover(SPAWN)}
        assert _make_driver().issue_initial_orders(event, movers) == 1
        assert movers[1].orders == [WPS[0]]

    def test_jitter_stays_within_radius_and_keeps_height(self):
        driver = _make_driver(jitter=5.0)
        target = Point(10.0, 10.0, 42.0)
        for _ in range(50):
            p = driver.jittered(target)
            assert p.distance_2d(target) <= 5.0 + 1e-9
            assert p.z == 42.0


class TestNativeMover:
    def test_orders_run(self):
        scene = MemoryScene(0)
        actor = scene.add_actor(5, SPAWN)
        mover = NativeMover(actor)
        mover.issue_move_order(WPS[0])
        assert mover.is_moving
        assert actor.move_orders == [WPS[0]]
        scene.advance(100.0)
        assert mover.position == WPS[0]
        assert not mover.is_moving
