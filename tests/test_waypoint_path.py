"""Tests for waypoint path target resolution and point geometry."""

import math

import pytest

from citysiege.models.actor import Progress, Side
from citysiege.models.geometry import Point
from citysiege.models.path import WaypointPath

RALLY = Point(0.0, 0.0, 0.0)
OBJECTIVE = Point(100.0, 0.0, 10.0)
WPS = (Point(25.0, 0.0, 1.0), Point(50.0, 0.0, 2.0), Point(75.0, 0.0, 3.0))


def _path(waypoints=WPS) -> WaypointPath:
    return WaypointPath(rally=RALLY, objective=OBJECTIVE, waypoints=waypoints)


class TestTargets:
    def test_attacker_walks_forward_then_objective(self):
        path = _path()
        targets = [path.target_for(Progress(Side.ATTACKER, i)) for i in range(4)]
        assert targets == [WPS[0], WPS[1], WPS[2], OBJECTIVE]

    def test_defender_walks_backward_then_rally(self):
        path = _path()
        targets = [path.target_for(Progress(Side.DEFENDER, i)) for i in (3, 2, 1, 0)]
        assert targets == [WPS[2], WPS[1], WPS[0], RALLY]

    def test_empty_path(self):
        path = _path(())
        assert len(path) == 0
        assert path.target_for(Progress.start(Side.ATTACKER, 0)) == OBJECTIVE
        assert path.target_for(Progress.start(Side.DEFENDER, 0)) == RALLY

    def test_anchors(self):
        path = _path()
        assert path.anchor_for(Side.ATTACKER) == RALLY
        assert path.anchor_for(Side.DEFENDER) == OBJECTIVE

    def test_describe_target(self):
        path = _path()
        assert path.describe_target(Progress(Side.ATTACKER, 0)) == "Waypoint 1"
        assert path.describe_target(Progress(Side.ATTACKER, 3)) == "Leader Position"
        assert path.describe_target(Progress(Side.DEFENDER, 3)) == "Waypoint 3"
        assert path.describe_target(Progress(Side.DEFENDER, 0)) == "Spawn Point"

    def test_indexing(self):
        path = _path()
        assert len(path) == 3
        assert path[1] == WPS[1]


class TestPoint:
    def test_distances(self):
        a = Point(0.0, 0.0, 0.0)
        b = Point(3.0, 4.0, 12.0)
        assert a.distance_to(b) == pytest.approx(13.0)
        assert a.distance_2d(b) == pytest.approx(5.0)

    def test_on_ring_keeps_height(self):
        p = Point(1.0, 1.0, 7.0).on_ring(2.0, math.pi / 2)
        assert p.x == pytest.approx(1.0)
        assert p.y == pytest.approx(3.0)
        assert p.z == 7.0

    def test_origin_and_str(self):
        assert Point(0.0, 0.0, 0.0).is_origin
        assert not Point(0.0, 0.0, 1.0).is_origin
        assert str(Point(1.0, 2.5, -3.0)) == "X=1.00, Y=2.50, Z=-3.00"
        assert Point(1.0, 2.0, 3.0).to_dict() == {"x": 1.0, "y": 2.0, "z": 3.0}
