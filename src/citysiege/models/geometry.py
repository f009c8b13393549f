"""3D world positions.

Points are authored in configuration (anchors, waypoints) and read
fresh from actor handles every tick; they are immutable values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    """Immutable world coordinate.

    Attributes:
        x: East/west coordinate.
        y: North/south coordinate.
        z: Height.
    """

    x: float
    y: float
    z: float

    # -- Geometry --------------------------------------------------------

    def distance_to(self, other: Point) -> float:
        """Euclidean 3D distance."""
        return math.sqrt(
            (self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2
        )

    def distance_2d(self, other: Point) -> float:
        """Distance in the XY plane, ignoring height."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def offset(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> Point:
        return Point(self.x + dx, self.y + dy, self.z + dz)

    def on_ring(self, radius: float, angle: float) -> Point:
        """Point at *angle* radians on a horizontal circle around self."""
        return Point(
            self.x + radius * math.cos(angle),
            self.y + radius * math.sin(angle),
            self.z,
        )

    def with_z(self, z: float) -> Point:
        return Point(self.x, self.y, z)

    @property
    def is_origin(self) -> bool:
        return self.x == 0 and self.y == 0 and self.z == 0

    # -- Serialization ---------------------------------------------------

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}

    def __str__(self) -> str:
        return f"X={self.x:.2f}, Y={self.y:.2f}, Z={self.z:.2f}"
