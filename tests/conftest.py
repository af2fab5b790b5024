"""Shared test fixtures for the camera path test suite."""

import pytest

from scriptmapper_easing.easing import EaseType
from scriptmapper_easing.path import CameraPath, CameraSegment, CameraWaypoint


def make_path(times, positions=None, rotations=None, **segment_kwargs):
    """Build a path with one segment per consecutive waypoint pair."""
    positions = positions or [(i, 0, 0) for i in range(len(times))]
    rotations = rotations or [None] * len(times)
    waypoints = [
        CameraWaypoint(id=f"wp-{i}", time=t, position=pos, rotation=rot)
        for i, (t, pos, rot) in enumerate(zip(times, positions, rotations))
    ]
    segments = [
        CameraSegment(
            id=f"seg-{i}",
            from_waypoint_id=waypoints[i].id,
            to_waypoint_id=waypoints[i + 1].id,
            **segment_kwargs,
        )
        for i in range(len(waypoints) - 1)
    ]
    return CameraPath(id="test-path", name="Test Path", waypoints=waypoints, segments=segments)


@pytest.fixture
def three_point_path():
    """Waypoints at 0, 0.3 and 1 with linear segments."""
    return make_path(
        [0.0, 0.3, 1.0],
        positions=[(0, 0, 0), (3, 0, 0), (10, 0, 0)],
        easing_enabled=False,
    )


@pytest.fixture
def eased_path():
    """Two waypoints joined by an ease-in quadratic segment."""
    return make_path(
        [0.0, 1.0],
        positions=[(0, 0, 0), (10, 20, -10)],
        rotations=[(0, 0, 0), (0, 90, 0)],
        function_id="quadratic",
        ease_type=EaseType.EASE_IN,
        easing_enabled=True,
    )


@pytest.fixture
def path_factory():
    """The make_path builder, for tests that need custom paths."""
    return make_path
