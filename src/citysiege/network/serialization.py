"""Serialization helpers — siege state to plain dicts for the REST API."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from citysiege.models.actor import Side

if TYPE_CHECKING:
    from citysiege.engine.siege_machine import SiegeEventStateMachine
    from citysiege.models.city import City
    from citysiege.models.siege import SiegeEvent


def siege_to_dict(event: SiegeEvent, machine: SiegeEventStateMachine, now: float) -> dict[str, Any]:
    leader = machine.objective_handle(event) if event.is_active else None
    return {
        "event_id": event.event_id,
        "city": event.city.name,
        "phase": event.phase.value,
        "attackers": event.directory.count(Side.ATTACKER),
        "defenders": event.directory.count(Side.DEFENDER),
        "queued_respawns": len(event.death_queue),
        "remaining_seconds": round(event.remaining(now), 1),
        "narrative_remaining_seconds": round(event.narrative_remaining(now), 1),
        "leader": event.objective_name,
        "leader_alive": leader is not None and leader.is_alive,
        "leader_health": round(leader.health_pct, 1) if leader is not None else None,
        "outcome": event.outcome.value if event.outcome else None,
    }


def city_to_dict(city: City, under_siege: bool) -> dict[str, Any]:
    return {
        "name": city.name,
        "faction": city.faction.value,
        "map_id": city.map_id,
        "enabled": city.enabled,
        "waypoints": len(city.waypoints),
        "under_siege": under_siege,
    }
