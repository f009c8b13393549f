"""Tests for the ``.citysiege`` admin commands dispatched through the router."""

from __future__ import annotations

import random
from dataclasses import replace

import pytest

from citysiege.loaders.city_loader import default_cities, find_city
from citysiege.loaders.config_loader import SiegeConfig
from citysiege.main import Configuration, create_services
from citysiege.models.actor import Tier
from citysiege.models.city import Faction
from citysiege.models.geometry import Point
from citysiege.models.siege import Outcome
from citysiege.network.commands import LOGIN_REQUIRED, register_all_handlers
from citysiege.util.constants import WAYPOINT_MARKER_TEMPLATE
from citysiege.world.memory import MemorySession

NOW = 5000.0

WAYPOINTS = (
    Point(-9080.0, 430.0, 93.0),
    Point(-8850.0, 570.0, 95.0),
    Point(-8625.0, 440.0, 103.0),
)


def _make_services(**overrides):
    cities = [replace(c, waypoints=WAYPOINTS) if c.name == "Stormwind" else c
              for c in default_cities()]
    config = Configuration(siege=SiegeConfig(**overrides), cities=cities)
    svc = create_services(config, rng=random.Random(3), clock=lambda: NOW)
    register_all_handlers(svc.router, svc)
    return svc


def _session(svc, name: str = "Anduin") -> MemorySession:
    city = find_city(svc.orchestrator.cities, "Stormwind")
    return svc.audience.add(MemorySession(
        name=name, faction=Faction.ALLIANCE, level=80, map_id=city.map_id, position=city.center,
    ))


@pytest.fixture
def svc():
    return _make_services()


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestDispatch:
    @pytest.mark.asyncio
    async def test_empty_command_shows_usage(self, svc):
        lines = await svc.router.dispatch(".citysiege")
        assert lines[0].startswith("Usage: .citysiege <")
        assert "start" in lines[0]

    @pytest.mark.asyncio
    async def test_unknown_subcommand(self, svc):
        lines = await svc.router.dispatch(".citysiege bogus")
        assert lines[0] == "Unknown subcommand 'bogus'."
        assert lines[1].startswith("Usage:")

    def test_prefix_is_optional(self, svc):
        assert svc.router.parse(".cs start Stormwind") == ["start", "Stormwind"]
        assert svc.router.parse("start 'Thunder Bluff'") == ["start", "Thunder Bluff"]
        assert svc.router.parse("") == []


# ---------------------------------------------------------------------------
# Siege control
# ---------------------------------------------------------------------------


class TestStartStop:
    @pytest.mark.asyncio
    async def test_start_named_city(self, svc):
        lines = await svc.router.dispatch(".citysiege start stormwind")
        assert lines == ["Siege of Stormwind started! Combat begins in 150 seconds."]
        assert svc.orchestrator.active_events[0].city.name == "Stormwind"

    @pytest.mark.asyncio
    async def test_start_invalid_city(self, svc):
        lines = await svc.router.dispatch("start Dalaran")
        assert lines[0].startswith("Invalid city name. Valid cities: Stormwind, Ironforge")

    @pytest.mark.asyncio
    async def test_start_random_city(self, svc):
        lines = await svc.router.dispatch("start")
        assert lines[0].startswith("Siege of ")
        assert len(svc.orchestrator.active_events) == 1

    @pytest.mark.asyncio
    async def test_start_rejected_when_disabled(self):
        svc = _make_services(enabled=False)
        assert await svc.router.dispatch("start") == ["City Siege module is disabled."]

    @pytest.mark.asyncio
    async def test_stop_without_sieges(self, svc):
        assert await svc.router.dispatch("stop Stormwind alliance") == ["No active siege events."]

    @pytest.mark.asyncio
    async def test_stop_usage(self, svc):
        await svc.router.dispatch("start Stormwind")
        lines = await svc.router.dispatch("stop Stormwind")
        assert lines[0] == "Usage: .citysiege stop <cityname> <alliance|horde>"

    @pytest.mark.asyncio
    async def test_stop_defenders_win(self, svc):
        await svc.router.dispatch("start Stormwind")
        lines = await svc.router.dispatch("stop Stormwind alliance")
        assert "The Alliance has successfully defended Stormwind!" in lines[0]
        event = svc.orchestrator.events[0]
        assert event.outcome is Outcome.DEFENDERS
        assert not event.is_active

    @pytest.mark.asyncio
    async def test_stop_attackers_win(self, svc):
        await svc.router.dispatch("start Stormwind")
        lines = await svc.router.dispatch("stop Stormwind horde")
        assert "The Horde has conquered Stormwind!" in lines[0]

    @pytest.mark.asyncio
    async def test_stop_invalid_faction(self, svc):
        await svc.router.dispatch("start Stormwind")
        assert await svc.router.dispatch("stop Stormwind scourge") == \
            ["Invalid faction. Use 'alliance' or 'horde'."]

    @pytest.mark.asyncio
    async def test_stop_city_not_besieged(self, svc):
        await svc.router.dispatch("start Stormwind")
        assert await svc.router.dispatch("stop Orgrimmar horde") == ["No active siege in Orgrimmar"]

    @pytest.mark.asyncio
    async def test_cleanup(self, svc):
        await svc.router.dispatch("start Stormwind")
        lines = await svc.router.dispatch("cleanup")
        assert lines == ["Cleaned up siege creatures in Stormwind"]
        assert svc.orchestrator.events == []
        assert await svc.router.dispatch("cleanup") == ["No siege events to cleanup."]


# ---------------------------------------------------------------------------
# Status queries
# ---------------------------------------------------------------------------


class TestStatus:
    @pytest.mark.asyncio
    async def test_idle_status(self, svc):
        lines = await svc.router.dispatch("status")
        assert lines[:3] == ["=== City Siege Status ===", "Module Enabled: Yes", "Active Sieges: 0"]

    @pytest.mark.asyncio
    async def test_active_status(self, svc):
        svc.orchestrator.start(NOW)
        await svc.router.dispatch("start Stormwind")
        lines = await svc.router.dispatch("status")
        assert "Active Sieges: 1" in lines
        assert "--- Active Siege Events ---" in lines
        assert any(line.startswith("  Stormwind - ") and "30 minutes remaining" in line
                   for line in lines)
        assert any("Leader of Stormwind" in line and "ALIVE" in line for line in lines)
        assert "    Phase: Cinematic (RP)" in lines
        assert lines[-1].startswith("Next auto-siege in: ")

    @pytest.mark.asyncio
    async def test_wounded_leader_health(self, svc):
        await svc.router.dispatch("start Stormwind")
        event = svc.orchestrator.active_events[0]
        svc.orchestrator.machine.objective_handle(event).damage(60.0)
        lines = await svc.router.dispatch("status")
        assert any(line.endswith("- ALIVE, HP: 40.0%") for line in lines)

        svc.orchestrator.machine.objective_handle(event).damage(100.0)
        lines = await svc.router.dispatch("status")
        assert any(line.endswith("- DEAD, HP: 0.0%") for line in lines)


class TestInfo:
    @pytest.mark.asyncio
    async def test_requires_session(self, svc):
        assert await svc.router.dispatch("info") == [LOGIN_REQUIRED]

    @pytest.mark.asyncio
    async def test_requires_selection(self, svc):
        session = _session(svc)
        assert await svc.router.dispatch("info", session) == \
            ["You must select a unit to use this command."]

    @pytest.mark.asyncio
    async def test_unit_outside_siege(self, svc):
        session = _session(svc)
        session.selected_identity = 99999
        assert await svc.router.dispatch("info", session) == \
            ["Selected unit is not part of any active siege."]

    @pytest.mark.asyncio
    async def test_attacker_info(self, svc):
        await svc.router.dispatch("start Stormwind")
        event = svc.orchestrator.active_events[0]
        session = _session(svc)
        session.selected_identity = event.directory.by_tier(Tier.MINION)[0].identity
        lines = await svc.router.dispatch("info", session)
        assert "in Stormwind" in lines[0]
        assert lines[1] == "Type: Attacker NPC | Current Waypoint: 0 | Target: Waypoint 1"
        assert lines[2].startswith("Distance to target: ")


class TestDistance:
    @pytest.mark.asyncio
    async def test_requires_session(self, svc):
        assert await svc.router.dispatch("distance") == [LOGIN_REQUIRED]

    @pytest.mark.asyncio
    async def test_all_cities(self, svc):
        lines = await svc.router.dispatch("distance", _session(svc))
        assert len(lines) == 9
        assert lines[1].startswith("  Stormwind: 0.0 yards")

    @pytest.mark.asyncio
    async def test_in_range(self, svc):
        lines = await svc.router.dispatch("distance stormwind", _session(svc))
        assert lines[0].endswith("Distance to Stormwind center: 0.0 yards")
        assert lines[2] == "Announce radius: 1500 yards"
        assert "You ARE in range" in lines[3]

    @pytest.mark.asyncio
    async def test_out_of_range(self, svc):
        lines = await svc.router.dispatch("distance orgrimmar", _session(svc))
        assert "OUT OF RANGE" in lines[3]

    @pytest.mark.asyncio
    async def test_invalid_city(self, svc):
        lines = await svc.router.dispatch("distance Dalaran", _session(svc))
        assert lines[0].startswith("Invalid city name. Available: ")


# ---------------------------------------------------------------------------
# Waypoint visualization
# ---------------------------------------------------------------------------


class TestWaypoints:
    @pytest.mark.asyncio
    async def test_usage(self, svc):
        lines = await svc.router.dispatch("waypoints")
        assert lines[0] == "Usage: .citysiege waypoints <cityname>"

    @pytest.mark.asyncio
    async def test_toggle(self, svc):
        scene = svc.world.find_scene(0)

        def markers():
            return [a for a in scene.actors if a.template_id == WAYPOINT_MARKER_TEMPLATE]

        lines = await svc.router.dispatch("waypoints Stormwind")
        assert lines[-1] == "Total markers: 5 (1 Spawn + 3 Waypoints + 1 Leader)"
        assert "City has 3 waypoints configured." in lines
        assert len(markers()) == 5

        lines = await svc.router.dispatch("waypoints Stormwind")
        assert lines == ["Waypoint visualization hidden for Stormwind"]
        assert markers() == []

    @pytest.mark.asyncio
    async def test_unknown_city(self, svc):
        lines = await svc.router.dispatch("waypoints Dalaran")
        assert lines[0].startswith("Unknown city. Use: ")

    @pytest.mark.asyncio
    async def test_testwaypoint(self, svc):
        session = _session(svc)
        lines = await svc.router.dispatch("testwaypoint", session)
        assert lines[0] == "Test waypoint marker spawned for 20 seconds."
        scene = svc.world.find_scene(0)
        assert any(a.template_id == WAYPOINT_MARKER_TEMPLATE for a in scene.actors)
        scene.advance(21.0)
        assert not any(a.template_id == WAYPOINT_MARKER_TEMPLATE for a in scene.actors)

    @pytest.mark.asyncio
    async def test_testwaypoint_requires_session(self, svc):
        assert await svc.router.dispatch("testwaypoint") == [LOGIN_REQUIRED]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestReload:
    @pytest.mark.asyncio
    async def test_reload_applies_new_options(self, svc, tmp_path):
        path = tmp_path / "citysiege.yaml"
        path.write_text(
            "CitySiege.TimerMin: 10\n"
            "CitySiege.TimerMax: 20\n"
            "CitySiege.Exodar.WaypointCount: 1\n"
            "CitySiege.Exodar.Waypoint1.X: 1.0\n",
            encoding="utf-8",
        )
        svc.config_path = str(path)
        lines = await svc.router.dispatch("reload")
        assert "Configuration reloaded successfully!" in lines[0]
        assert "Timer: 10-20 min" in lines[2]
        assert lines[-1] == "  Exodar: 1 waypoints"
        assert svc.orchestrator.config.timer_min_minutes == 10
        assert svc.config.timer_max_minutes == 20

    @pytest.mark.asyncio
    async def test_reload_picks_up_new_locale_files(self, svc, tmp_path):
        locale_dir = tmp_path / "locale"
        locale_dir.mkdir()
        (locale_dir / "deDE.yaml").write_text(
            'SIEGE_START: "Die Stadt {city} wird angegriffen!"\n', encoding="utf-8",
        )
        path = tmp_path / "citysiege.yaml"
        path.write_text(f"CitySiege.LocaleDir: '{locale_dir}'\n", encoding="utf-8")
        svc.config_path = str(path)

        lines = await svc.router.dispatch("reload")
        assert "Locales loaded: deDE, enUS, frFR" in lines

        city = find_city(svc.orchestrator.cities, "Stormwind")
        german = svc.audience.add(MemorySession(
            name="Hans", faction=Faction.ALLIANCE, level=80, map_id=city.map_id,
            position=city.center, locale="deDE",
        ))
        await svc.router.dispatch("start Stormwind")
        assert "Die Stadt Stormwind wird angegriffen!" in german.messages
