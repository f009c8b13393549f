"""Typed event bus — decoupled notification of siege lifecycle changes.

The engine emits these events; main.py wires logging handlers and the
admin surface may subscribe for its own bookkeeping.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, TypeVar, Type

log = logging.getLogger(__name__)

T = TypeVar("T")


# -- Siege lifecycle events ----------------------------------------------

@dataclass(frozen=True)
class SiegeStarted:
    """A siege event was created and its waves spawned."""
    event_id: int
    city: str
    attackers: int
    defenders: int


@dataclass(frozen=True)
class SiegePhaseChanged:
    """A siege event moved to a new phase."""
    event_id: int
    city: str
    new_phase: str  # "combat" or "ended"


@dataclass(frozen=True)
class SiegeEnded:
    """A siege event has concluded."""
    event_id: int
    city: str
    outcome: str  # "attackers" or "defenders"
    forced: bool


@dataclass(frozen=True)
class NarrativeMilestone:
    """A countdown threshold was announced during the narrative phase."""
    event_id: int
    city: str
    percent: int


# -- Actor events --------------------------------------------------------

@dataclass(frozen=True)
class ActorDied:
    """A tracked actor was found dead and queued for respawn."""
    event_id: int
    identity: int
    tier: str
    is_bot: bool


@dataclass(frozen=True)
class ActorRespawned:
    """A queued actor came back; native actors get a new identity."""
    event_id: int
    old_identity: int
    new_identity: int
    tier: str


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Simple synchronous event bus with typed events.

    Usage:
        bus = EventBus()
        bus.on(SiegeEnded, lambda e: print(e.outcome))
        bus.emit(SiegeEnded(event_id=1, city="Stormwind", outcome="defenders", forced=False))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers.

        A failing handler is logged and does not stop the others; the
        engine tick must never abort because of a listener.
        """
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
            except Exception:
                log.exception("Event handler failed for %s", type(event).__name__)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
