"""Tests for the camera path data model."""

import numpy as np
import pytest

from scriptmapper_easing.easing import EaseType, EasingId, ParametricParams
from scriptmapper_easing.path import (
    CameraPath,
    CameraSegment,
    CameraWaypoint,
    CoordinateSystem,
    calculate_look_at_rotation,
    compute_segments_from_waypoints,
    create_segment,
    create_waypoint,
    generate_segments_from_waypoints,
    validate_camera_path,
    waypoint_pose,
)


class TestWaypoint:

    def test_position_becomes_float_array(self):
        wp = CameraWaypoint(id="a", time=0, position=[1, 2, 3])
        assert wp.position.dtype == np.float64
        assert wp.position.shape == (3,)

    def test_dict_round_trip(self):
        wp = CameraWaypoint(id="a", time=0.5, position=(1, 2, 3), rotation=(10, 20, 30),
                            name="Drop", beat=8, bookmark_command="q_1_2_3_10_20_30_60,IOSine")
        data = wp.to_dict()
        assert data["position"] == {"x": 1, "y": 2, "z": 3}
        assert data["rotation"] == {"rx": 10, "ry": 20, "rz": 30}
        assert CameraWaypoint.from_dict(data).to_dict() == data

    def test_optional_fields_are_omitted(self):
        data = CameraWaypoint(id="a", time=0, position=(0, 0, 0)).to_dict()
        assert set(data) == {"id", "time", "position"}

    def test_create_waypoint_clamps_time(self):
        assert create_waypoint(1.5).time == 1.0
        assert create_waypoint(-0.2).time == 0.0
        np.testing.assert_allclose(create_waypoint(0.5).position, [0, 1, 0])

    def test_create_waypoint_ids_are_unique(self):
        assert create_waypoint(0).id != create_waypoint(0).id


class TestSegment:

    def test_defaults(self):
        segment = create_segment("a", "b")
        assert segment.function_id == "quadratic"
        assert segment.ease_type is EaseType.EASE_BOTH
        assert segment.easing_enabled is True

    def test_enum_function_id_is_stored_as_string(self):
        segment = CameraSegment(id="s", from_waypoint_id="a", to_waypoint_id="b",
                                function_id=EasingId.CUBIC, ease_type="easeout")
        assert segment.function_id == "cubic"
        assert type(segment.function_id) is str
        assert segment.ease_type is EaseType.EASE_OUT

    def test_dict_round_trip(self):
        segment = CameraSegment(id="s", from_waypoint_id="a", to_waypoint_id="b",
                                function_id="drift", ease_type=EaseType.EASE_IN,
                                drift_params=ParametricParams(3, 7), raw_command="ease_3_7")
        data = segment.to_dict()
        assert data["ease_type"] == "easein"
        assert data["drift_params"] == {"x": 3, "y": 7}
        assert CameraSegment.from_dict(data) == segment

    def test_from_dict_rejects_bad_ease_type(self):
        with pytest.raises(ValueError):
            CameraSegment.from_dict({"id": "s", "from_waypoint_id": "a", "to_waypoint_id": "b",
                                     "ease_type": "sideways"})


class TestPath:

    def test_dict_round_trip(self, eased_path):
        eased_path.bpm = 120
        eased_path.coordinate_system = CoordinateSystem.RIGHT_HANDED
        data = eased_path.to_dict()
        assert data["coordinate_system"] == "right-handed"
        assert CameraPath.from_dict(data).to_dict() == data

    def test_generate_segments(self):
        waypoints = [create_waypoint(t) for t in (0, 0.5, 1)]
        segments = generate_segments_from_waypoints(waypoints)
        assert len(segments) == 2
        assert [s.from_waypoint_id for s in segments] == [waypoints[0].id, waypoints[1].id]
        assert [s.to_waypoint_id for s in segments] == [waypoints[1].id, waypoints[2].id]
        assert all(s.function_id == "quadratic" and s.ease_type is EaseType.EASE_BOTH for s in segments)

    def test_generate_segments_short_list(self):
        assert generate_segments_from_waypoints([create_waypoint(0)]) == []
        assert generate_segments_from_waypoints([]) == []


class TestComputeSegments:

    def test_easing_comes_from_starting_waypoint(self):
        waypoints = [
            CameraWaypoint(id="a", time=0, position=(0, 0, 0), bookmark_command="q_0_1_-5_0_0_0_60,IOSine"),
            CameraWaypoint(id="b", time=0.25, position=(0, 0, 0), bookmark_command="q_0_1_0_0_0_0_60"),
            CameraWaypoint(id="c", time=1, position=(0, 0, 0), bookmark_command="q_0_1_5_0_0_0_60,stop"),
        ]
        first, second = compute_segments_from_waypoints(waypoints, "s")

        assert first.id == "s-0"
        assert first.function_id == "sine"
        assert first.ease_type is EaseType.EASE_BOTH
        assert first.easing_enabled is True
        assert first.raw_command == "IOSine"
        assert first.bookmark_commands == "q_0_1_-5_0_0_0_60,IOSine"
        assert first.duration == pytest.approx(0.25)

        assert second.easing_enabled is False
        assert second.function_id == "linear"
        assert second.raw_command is None
        assert second.duration == pytest.approx(0.75)

    def test_drift_params(self):
        waypoints = [
            CameraWaypoint(id="a", time=0, position=(0, 0, 0), bookmark_command="q_0_0_0_0_0_0_60,ease_2_8"),
            CameraWaypoint(id="b", time=1, position=(0, 0, 0)),
        ]
        (segment,) = compute_segments_from_waypoints(waypoints)
        assert segment.function_id == "drift"
        assert segment.drift_params == ParametricParams(2, 8)


class TestValidateCameraPath:

    def test_valid(self, three_point_path):
        assert validate_camera_path(three_point_path) == []

    def test_too_few_waypoints(self, path_factory):
        assert validate_camera_path(path_factory([0.0])) == ["Path must have at least 2 waypoints"]

    def test_time_errors(self, path_factory):
        errors = validate_camera_path(path_factory([0.1, 0.5, 0.4, 0.9]))
        assert "First waypoint must be at time 0" in errors
        assert "Last waypoint must be at time 1" in errors
        assert any("Waypoint 2 time" in e for e in errors)

    def test_segment_count(self, three_point_path):
        three_point_path.segments.pop()
        assert "Expected 2 segments, got 1" in validate_camera_path(three_point_path)

    def test_segment_references(self, three_point_path):
        three_point_path.segments[0].to_waypoint_id = "ghost"
        errors = validate_camera_path(three_point_path)
        assert "Segment seg-0 references invalid to_waypoint_id: ghost" in errors
        assert "Segment 0 to_waypoint_id should be wp-1, got ghost" in errors


class TestLookAt:

    def test_facing_forward(self):
        np.testing.assert_allclose(calculate_look_at_rotation((0, 1.5, -5)), [0, 0, 0], atol=1e-9)

    def test_yaw(self):
        rotation = calculate_look_at_rotation((5, 1.5, 0))
        assert rotation[1] == pytest.approx(-90)

    def test_pitch_down_from_above(self):
        rotation = calculate_look_at_rotation((0, 6.5, -5))
        assert rotation[0] == pytest.approx(45)

    def test_custom_target(self):
        np.testing.assert_allclose(calculate_look_at_rotation((0, 0, 0), target=(0, 0, 1)), [0, 0, 0], atol=1e-9)


class TestWaypointPose:

    def test_command_overrides_fields(self):
        wp = CameraWaypoint(id="a", time=0, position=(9, 9, 9), bookmark_command="q_1_2_3_4_5_6_60,IOSine")
        position, rotation = waypoint_pose(wp)
        np.testing.assert_allclose(position, [1, 2, 3])
        np.testing.assert_allclose(rotation, [4, 5, 6])

    def test_structured_fields_without_position_command(self):
        wp = CameraWaypoint(id="a", time=0, position=(9, 9, 9), rotation=(1, 1, 1), bookmark_command="spin60,IOQuad")
        position, rotation = waypoint_pose(wp)
        np.testing.assert_allclose(position, [9, 9, 9])
        np.testing.assert_allclose(rotation, [1, 1, 1])
