"""Per-event actor directory.

The single source of truth for "where is this actor going next".  Each
live identity has exactly one entry; a respawned native actor gets a new
identity through :meth:`ActorDirectory.reassign`, so no entry ever refers
to a dead handle.
"""

from __future__ import annotations

import logging
from typing import Iterator

from citysiege.models.actor import ActorEntry, Progress, Side, Tier
from citysiege.util.errors import DuplicateActor, NotFound

log = logging.getLogger(__name__)


class ActorDirectory:
    """Mapping of actor identity → :class:`ActorEntry`."""

    def __init__(self, waypoint_count: int = 0) -> None:
        self.waypoint_count = waypoint_count
        self._entries: dict[int, ActorEntry] = {}

    # -- Mutation --------------------------------------------------------

    def register(self, identity: int, tier: Tier, side: Side, is_bot: bool = False) -> ActorEntry:
        """Add a new identity at its side's starting index.

        Raises:
            DuplicateActor: If the identity is already registered.
        """
        if identity in self._entries:
            raise DuplicateActor(f"Actor {identity} already registered")
        entry = ActorEntry(identity, tier, Progress.start(side, self.waypoint_count), is_bot)
        self._entries[identity] = entry
        return entry

    def advance(self, identity: int) -> Progress:
        """Move one step along the path; no-op past the terminal value.

        Raises:
            NotFound: If the identity is not registered.
        """
        entry = self.get(identity)
        entry.progress = entry.progress.advanced(self.waypoint_count)
        return entry.progress

    def reassign(self, old_identity: int, new_identity: int) -> ActorEntry:
        """Move an entry to a respawned identity, resetting its progress.

        Raises:
            NotFound: If *old_identity* is not registered.
            DuplicateActor: If *new_identity* belongs to another entry.
        """
        old = self.get(old_identity)
        if new_identity != old_identity and new_identity in self._entries:
            raise DuplicateActor(f"Actor {new_identity} already registered")
        del self._entries[old_identity]
        entry = ActorEntry(
            new_identity, old.tier, Progress.start(old.side, self.waypoint_count), old.is_bot,
        )
        self._entries[new_identity] = entry
        return entry

    def remove(self, identity: int) -> ActorEntry | None:
        return self._entries.pop(identity, None)

    def clear(self) -> None:
        self._entries.clear()

    # -- Queries ---------------------------------------------------------

    def get(self, identity: int) -> ActorEntry:
        entry = self._entries.get(identity)
        if entry is None:
            raise NotFound(f"Actor {identity} is not part of this siege")
        return entry

    def find(self, identity: int) -> ActorEntry | None:
        return self._entries.get(identity)

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ActorEntry]:
        return iter(list(self._entries.values()))

    def natives(self) -> list[ActorEntry]:
        return [e for e in self._entries.values() if not e.is_bot]

    def bots(self) -> list[ActorEntry]:
        return [e for e in self._entries.values() if e.is_bot]

    def by_tier(self, *tiers: Tier) -> list[ActorEntry]:
        return [e for e in self._entries.values() if e.tier in tiers]

    def count(self, side: Side, include_bots: bool = True) -> int:
        return sum(
            1 for e in self._entries.values()
            if e.side is side and (include_bots or not e.is_bot)
        )
