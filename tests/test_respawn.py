"""Tests for the respawn scheduler's queue handling."""

from __future__ import annotations

import random

import pytest

from citysiege.engine.bots import BotCoordinator
from citysiege.engine.formation import FormationSpawner
from citysiege.engine.respawn import RespawnScheduler
from citysiege.loaders.city_loader import default_cities, find_city
from citysiege.loaders.config_loader import SiegeConfig
from citysiege.models.actor import Side, Tier
from citysiege.models.siege import SiegeEvent
from citysiege.world.memory import MemoryScene


def _make_scheduler(**overrides) -> RespawnScheduler:
    config = SiegeConfig(**overrides)
    rng = random.Random(2)
    return RespawnScheduler(config, FormationSpawner(config, rng), BotCoordinator(config), rng)


def _make_event() -> SiegeEvent:
    city = find_city(default_cities(), "Orgrimmar")
    return SiegeEvent(event_id=1, city=city, started_at=0.0, ends_at=1800.0,
                      narrative_seconds=150.0)


class TestDelays:
    @pytest.mark.parametrize("tier,side,expected", [
        (Tier.LEADER, Side.ATTACKER, 300),
        (Tier.MINI_BOSS, Side.ATTACKER, 180),
        (Tier.ELITE, Side.ATTACKER, 120),
        (Tier.MINION, Side.ATTACKER, 60),
        (Tier.DEFENDER, Side.DEFENDER, 45),
        (Tier.BOT, Side.ATTACKER, 30),
        (Tier.BOT, Side.DEFENDER, 30),
    ])
    def test_delay_per_tier(self, tier, side, expected):
        assert _make_scheduler().delay_for(tier, side) == expected


class TestQueue:
    def test_record_death_is_idempotent(self):
        scheduler = _make_scheduler()
        event = _make_event()
        event.directory.register(5, Tier.MINION, Side.ATTACKER)
        assert scheduler.record_death(event, 5, 10.0) is not None
        assert scheduler.record_death(event, 5, 11.0) is None
        assert len(event.death_queue) == 1
        assert event.death_queue[0].died_at == 10.0

    def test_unknown_identity_is_not_queued(self):
        scheduler = _make_scheduler()
        event = _make_event()
        assert scheduler.record_death(event, 99, 0.0) is None
        assert event.death_queue == []

    def test_due_respects_delay(self):
        scheduler = _make_scheduler()
        event = _make_event()
        event.directory.register(1, Tier.MINION, Side.ATTACKER)
        event.directory.register(2, Tier.ELITE, Side.ATTACKER)
        scheduler.record_death(event, 1, 0.0)
        scheduler.record_death(event, 2, 0.0)
        assert [r.identity for r in scheduler.due(event, 60.0)] == [1]
        assert [r.identity for r in scheduler.due(event, 120.0)] == [1, 2]

    def test_bots_queue_even_when_native_respawn_is_off(self):
        scheduler = _make_scheduler(respawn_enabled=False)
        event = _make_event()
        event.directory.register(7, Tier.BOT, Side.DEFENDER, is_bot=True)
        assert scheduler.record_death(event, 7, 0.0) is not None


class TestProcess:
    def test_native_respawn_keeps_dead_template(self):
        scheduler = _make_scheduler()
        event = _make_event()
        scene = MemoryScene(1)
        dead = scene.add_actor(4242, event.city.spawn)
        event.directory.register(dead.identity, Tier.LEADER, Side.ATTACKER)
        dead.kill()
        scheduler.record_death(event, dead.identity, 0.0, template_id=4242)

        pairs = scheduler.process_due(event, scene, 300.0)

        assert len(pairs) == 1
        old, new = pairs[0]
        assert old == dead.identity
        assert scene.get_actor(new).template_id == 4242
        assert scene.get_actor(old) is None
        assert event.directory.get(new).tier is Tier.LEADER

    def test_no_scene_keeps_entry_queued(self):
        scheduler = _make_scheduler()
        event = _make_event()
        event.directory.register(1, Tier.MINION, Side.ATTACKER)
        scheduler.record_death(event, 1, 0.0)
        assert scheduler.process_due(event, None, 100.0) == []
        assert event.is_queued(1)

    def test_unreachable_bot_stays_queued(self):
        scheduler = _make_scheduler()
        event = _make_event()
        event.directory.register(8, Tier.BOT, Side.ATTACKER, is_bot=True)
        scheduler.record_death(event, 8, 0.0)
        assert scheduler.process_due(event, MemoryScene(1), 100.0) == []
        assert event.is_queued(8)

    def test_defender_respawn_point_ring(self):
        scheduler = _make_scheduler()
        event = _make_event()
        for _ in range(20):
            p = scheduler.respawn_point(event, Side.DEFENDER)
            assert 10.0 - 1e-9 <= p.distance_2d(event.city.leader) <= 15.0 + 1e-9
        assert scheduler.respawn_point(event, Side.ATTACKER) == event.city.spawn
