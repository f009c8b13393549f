"""Error taxonomy for the siege engine.

Per-actor failures are always local: callers catch these, log, and skip
or retry the affected actor on the next tick.
"""

from __future__ import annotations


class SiegeError(Exception):
    """Base class for all siege engine errors."""


class NotFound(SiegeError):
    """A scene, actor, template or directory entry could not be located."""


class DuplicateActor(SiegeError):
    """An identity was registered twice in the same actor directory."""


class InvalidPosition(SiegeError):
    """No ground height could be resolved for a position."""


class StateViolation(SiegeError):
    """A siege event was asked to move backwards or out of a terminal phase."""
