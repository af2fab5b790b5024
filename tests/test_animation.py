"""Tests for camera path interpolation.

Tests cover:
- get_segment_boundaries, find_segment_at_time: boundary ownership
- calculate_segment_output: easing, linear fallback
- interpolate_camera_path: position, rotation, degenerate paths
- preview/graph sampling and path length
"""

import numpy as np
import pytest

from scriptmapper_easing.animation import (
    calculate_path_length,
    calculate_segment_output,
    find_segment_at_time,
    generate_graph_points,
    generate_path_preview_points,
    get_segment_boundaries,
    interpolate_camera_path,
)
from scriptmapper_easing.easing import EASING_FUNCTIONS, EaseType, EasingId, EasingRegistry, ParametricParams
from scriptmapper_easing.path import CameraPath, CameraSegment, CameraWaypoint


# ---------------------------------------------------------------------------
# segment lookup
# ---------------------------------------------------------------------------

class TestSegmentLookup:

    def test_boundaries_are_waypoint_times(self, three_point_path):
        assert get_segment_boundaries(three_point_path) == [0.0, 0.3, 1.0]

    def test_inner_boundary_belongs_to_next_segment(self, three_point_path):
        assert find_segment_at_time(three_point_path, 0.3) == (1, 0.0)
        result = interpolate_camera_path(three_point_path, 0.3)
        assert result.current_segment_index == 1
        assert result.current_segment.id == "seg-1"
        assert result.segment_local_time == 0.0

    def test_start_and_end(self, three_point_path):
        assert find_segment_at_time(three_point_path, 0.0) == (0, 0.0)
        assert find_segment_at_time(three_point_path, 1.0) == (1, 1.0)

    def test_local_time_within_segment(self, three_point_path):
        index, local = find_segment_at_time(three_point_path, 0.15)
        assert index == 0
        assert local == pytest.approx(0.5)
        index, local = find_segment_at_time(three_point_path, 0.65)
        assert index == 1
        assert local == pytest.approx(0.5)

    def test_zero_length_segment_is_skipped(self, path_factory):
        path = path_factory([0.0, 0.5, 0.5, 1.0], easing_enabled=False)
        index, local = find_segment_at_time(path, 0.5)
        assert index == 2
        assert local == 0.0

    def test_lookup_is_deterministic(self, three_point_path):
        results = {find_segment_at_time(three_point_path, 0.3) for _ in range(10)}
        assert len(results) == 1


# ---------------------------------------------------------------------------
# segment output
# ---------------------------------------------------------------------------

class TestSegmentOutput:

    def _segment(self, **kwargs):
        return CameraSegment(id="s", from_waypoint_id="a", to_waypoint_id="b", **kwargs)

    def test_disabled_easing_is_linear(self):
        segment = self._segment(function_id="cubic", easing_enabled=False)
        assert calculate_segment_output(segment, 0.3) == pytest.approx(0.3)

    def test_enabled_easing(self):
        segment = self._segment(function_id="cubic", ease_type=EaseType.EASE_IN)
        assert calculate_segment_output(segment, 0.5) == pytest.approx(0.125)

    def test_drift_params_are_used(self):
        segment = self._segment(function_id="drift", ease_type=EaseType.EASE_IN,
                                drift_params=ParametricParams(10, 5))
        assert calculate_segment_output(segment, 0.5) == pytest.approx(0.125)

    def test_unknown_function_is_linear(self):
        segment = self._segment(function_id="wobble")
        assert calculate_segment_output(segment, 0.7) == pytest.approx(0.7)

    def test_local_time_is_clamped(self):
        segment = self._segment(function_id="quadratic", ease_type=EaseType.EASE_IN)
        assert calculate_segment_output(segment, 1.5) == pytest.approx(1.0)
        assert calculate_segment_output(segment, -0.5) == pytest.approx(0.0)


# ---------------------------------------------------------------------------
# interpolation
# ---------------------------------------------------------------------------

class TestInterpolateCameraPath:

    def test_linear_position(self, three_point_path):
        result = interpolate_camera_path(three_point_path, 0.65)
        np.testing.assert_allclose(result.position, [6.5, 0, 0])
        assert result.eased_time == pytest.approx(0.5)

    def test_eased_position(self, eased_path):
        result = interpolate_camera_path(eased_path, 0.5)
        np.testing.assert_allclose(result.position, [2.5, 5.0, -2.5])
        assert result.segment_local_time == pytest.approx(0.5)
        assert result.eased_time == pytest.approx(0.25)

    def test_rotation_follows_easing(self, eased_path):
        result = interpolate_camera_path(eased_path, 0.5)
        np.testing.assert_allclose(result.rotation, [0, 22.5, 0])

    def test_rotation_needs_both_endpoints(self, three_point_path):
        assert interpolate_camera_path(three_point_path, 0.5).rotation is None

    def test_end_points(self, three_point_path):
        np.testing.assert_allclose(interpolate_camera_path(three_point_path, 0).position, [0, 0, 0])
        end = interpolate_camera_path(three_point_path, 1)
        np.testing.assert_allclose(end.position, [10, 0, 0])
        assert end.segment_local_time == 1.0
        assert end.current_segment_index == 1

    def test_global_time_is_clamped(self, three_point_path):
        before = interpolate_camera_path(three_point_path, -2)
        after = interpolate_camera_path(three_point_path, 5)
        assert before.global_time == 0.0
        assert after.global_time == 1.0
        np.testing.assert_allclose(after.position, [10, 0, 0])

    def test_rotation_raw_degrees_take_long_way(self, path_factory):
        path = path_factory([0.0, 1.0], rotations=[(0, 350, 0), (0, 10, 0)], easing_enabled=False)
        result = interpolate_camera_path(path, 0.5)
        np.testing.assert_allclose(result.rotation, [0, 180, 0])

    def test_shortest_rotation_option(self, path_factory):
        path = path_factory([0.0, 1.0], rotations=[(0, 350, 0), (0, 10, 0)], easing_enabled=False)
        result = interpolate_camera_path(path, 0.5, shortest_rotation=True)
        np.testing.assert_allclose(result.rotation, [0, 360, 0])

    def test_does_not_mutate_path(self, eased_path):
        before = eased_path.to_dict()
        interpolate_camera_path(eased_path, 0.4)
        assert eased_path.to_dict() == before

    def test_returned_position_is_a_copy(self, three_point_path):
        result = interpolate_camera_path(three_point_path, 0)
        result.position[0] = 99
        assert three_point_path.waypoints[0].position[0] == 0


class TestDegeneratePaths:

    def test_empty_path(self):
        result = interpolate_camera_path(CameraPath(id="p", name="empty"), 0.5)
        np.testing.assert_allclose(result.position, [0, 0, 0])
        assert result.segment_local_time == 0.0
        assert result.current_segment is None

    def test_single_waypoint(self):
        path = CameraPath(id="p", name="single", waypoints=[
            CameraWaypoint(id="a", time=0.0, position=(1, 2, 3)),
        ])
        result = interpolate_camera_path(path, 0.7)
        np.testing.assert_allclose(result.position, [1, 2, 3])
        assert result.segment_local_time == 0.0
        assert result.current_segment_index == 0

    def test_missing_segments_fall_back_to_linear(self, path_factory):
        path = path_factory([0.0, 1.0], positions=[(0, 0, 0), (10, 0, 0)])
        path.segments = []
        result = interpolate_camera_path(path, 0.5)
        np.testing.assert_allclose(result.position, [5, 0, 0])
        assert result.current_segment is None

    def test_unsorted_waypoints_do_not_raise(self, path_factory):
        path = path_factory([0.0, 0.8, 0.4, 1.0], easing_enabled=False)
        for t in np.linspace(0, 1, 21):
            interpolate_camera_path(path, float(t))


# ---------------------------------------------------------------------------
# sampling helpers
# ---------------------------------------------------------------------------

class TestSampling:

    def test_preview_points(self, three_point_path):
        points = generate_path_preview_points(three_point_path, steps=20)
        assert points.shape == (21, 3)
        np.testing.assert_allclose(points[0], [0, 0, 0])
        np.testing.assert_allclose(points[-1], [10, 0, 0])

    def test_preview_points_short_path(self):
        path = CameraPath(id="p", name="single", waypoints=[
            CameraWaypoint(id="a", time=0.0, position=(1, 2, 3)),
        ])
        np.testing.assert_allclose(generate_path_preview_points(path), [[1, 2, 3]])

    def test_graph_points(self, three_point_path):
        points = generate_graph_points(three_point_path, points_per_segment=10)
        assert len(points) == 22
        assert points[0] == (0.0, 0.0, 0)
        x, y, index = points[-1]
        assert x == pytest.approx(1.0)
        assert y == pytest.approx(1.0)
        assert index == 1

    def test_graph_points_follow_easing(self, eased_path):
        points = generate_graph_points(eased_path, points_per_segment=2)
        assert points[1][0] == pytest.approx(0.5)
        assert points[1][1] == pytest.approx(0.25)

    def test_path_length(self, three_point_path):
        assert calculate_path_length(three_point_path) == pytest.approx(10.0)

    def test_path_length_diagonal(self, path_factory):
        path = path_factory([0.0, 1.0], positions=[(0, 0, 0), (3, 4, 0)])
        assert calculate_path_length(path) == pytest.approx(5.0)

    def test_sampling_needs_at_least_one_step(self, three_point_path):
        with pytest.raises(ValueError, match="at least 1"):
            generate_path_preview_points(three_point_path, steps=0)
        with pytest.raises(ValueError, match="at least 1"):
            generate_graph_points(three_point_path, points_per_segment=0)


class TestCustomRegistry:

    @pytest.fixture
    def linear_only(self):
        return EasingRegistry([fn for fn in EASING_FUNCTIONS if fn.id is EasingId.LINEAR])

    def test_graph_matches_interpolation(self, eased_path, linear_only):
        result = interpolate_camera_path(eased_path, 0.5, registry=linear_only)
        points = generate_graph_points(eased_path, points_per_segment=2, registry=linear_only)
        assert result.eased_time == pytest.approx(0.5)
        assert points[1][1] == pytest.approx(result.eased_time)

    def test_preview_uses_registry(self, eased_path, linear_only):
        points = generate_path_preview_points(eased_path, steps=2, registry=linear_only)
        np.testing.assert_allclose(points[1], [5, 10, -5])
