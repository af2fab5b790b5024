# (c) 2024 Niels Provos
#
# Piecewise camera path interpolation for ScriptMapper camera paths.
#
# position = start + (end - start) * eased(local_time), where local_time is
# the progress inside the segment that contains the global time.
#

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple
import numpy as np

from .easing import DEFAULT_REGISTRY, EasingRegistry
from .path import CameraPath, CameraSegment, CameraWaypoint

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class InterpolationResult:
    """Camera state at a global time"""
    position: np.ndarray
    current_segment: Optional[CameraSegment]
    current_segment_index: int
    segment_local_time: float  # Progress inside the segment, before easing
    global_time: float
    eased_time: float = 0.0
    rotation: Optional[np.ndarray] = None


def get_segment_boundaries(path: CameraPath) -> List[float]:
    """Normalized times at which segments change, one per waypoint"""
    return [wp.time for wp in path.waypoints]


def calculate_segment_output(
    segment: CameraSegment,
    local_time: float,
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> float:
    """
    Eased output of a segment at a local time.

    Args:
        segment: The segment whose easing applies
        local_time: Time within the segment, clamped to [0, 1]
        registry: Easing registry to resolve the function id

    Returns:
        The eased value, or local_time itself when easing is disabled or
        the function id is unknown
    """
    t = float(np.clip(local_time, 0.0, 1.0))
    if not segment.easing_enabled:
        return t

    fn = registry.get(segment.function_id)
    if fn is None:
        return t
    return fn.calculate(t, segment.ease_type, segment.drift_params)


def find_segment_at_time(path: CameraPath, global_time: float) -> Tuple[int, float]:
    """
    Locate the segment containing global_time.

    A time equal to an inner boundary belongs to the segment starting there.
    Times at or past the last waypoint belong to the last segment.

    Returns:
        Tuple of (segment_index, local_time)
    """
    waypoints = path.waypoints
    segment_count = len(waypoints) - 1
    if segment_count < 1 or global_time <= waypoints[0].time:
        return 0, 0.0
    if global_time >= waypoints[-1].time:
        return segment_count - 1, 1.0

    for i in range(segment_count):
        start = waypoints[i].time
        end = waypoints[i + 1].time
        if start <= global_time < end:
            duration = end - start
            local_time = (global_time - start) / duration if duration > 0 else 0.0
            return i, local_time

    # Unsorted waypoints can leave the time unmatched
    logger.debug(f"No segment of path {path.id} contains t={global_time}, using the last one")
    return segment_count - 1, 1.0


def _lerp(start: np.ndarray, end: np.ndarray, t: float) -> np.ndarray:
    return start + t * (end - start)


def _lerp_angles(start: np.ndarray, end: np.ndarray, t: float, shortest: bool) -> np.ndarray:
    delta = end - start
    if shortest:
        delta = (delta + 180.0) % 360.0 - 180.0
    return start + t * delta


def interpolate_camera_path(
    path: CameraPath,
    global_time: float,
    registry: EasingRegistry = DEFAULT_REGISTRY,
    shortest_rotation: bool = False,
) -> InterpolationResult:
    """
    Interpolate the camera pose along a multi-segment path.

    Args:
        path: Camera path with N waypoints and N-1 segments
        global_time: Normalized time, clamped to [0, 1]
        registry: Easing registry to resolve segment functions
        shortest_rotation: Interpolate rotations along the shorter arc
            instead of the raw degree difference

    Returns:
        InterpolationResult with the position, the rotation when both
        endpoints have one, and the active segment
    """
    t = float(np.clip(global_time, 0.0, 1.0))
    waypoints = path.waypoints

    if len(waypoints) < 2:
        if waypoints:
            position = waypoints[0].position.copy()
            rotation = None if waypoints[0].rotation is None else waypoints[0].rotation.copy()
        else:
            position, rotation = np.zeros(3), None
        return InterpolationResult(
            position=position,
            rotation=rotation,
            current_segment=path.segments[0] if path.segments else None,
            current_segment_index=0,
            segment_local_time=0.0,
            global_time=t,
        )

    index, local_time = find_segment_at_time(path, t)
    segment = path.segments[index] if index < len(path.segments) else None
    if segment is None:
        logger.debug(f"Path {path.id} has no segment {index}, interpolating linearly")
        eased = local_time
    else:
        eased = calculate_segment_output(segment, local_time, registry)

    start: CameraWaypoint = waypoints[index]
    end: CameraWaypoint = waypoints[index + 1]

    rotation = None
    if start.rotation is not None and end.rotation is not None:
        rotation = _lerp_angles(start.rotation, end.rotation, eased, shortest_rotation)

    return InterpolationResult(
        position=_lerp(start.position, end.position, eased),
        rotation=rotation,
        current_segment=segment,
        current_segment_index=index,
        segment_local_time=local_time,
        global_time=t,
        eased_time=eased,
    )


def generate_path_preview_points(
    path: CameraPath,
    steps: int = 100,
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> np.ndarray:
    """
    Sample positions along the path for drawing.

    Returns:
        Array of shape (steps + 1, 3), or one row per waypoint for paths
        with fewer than two waypoints

    Raises:
        ValueError: If steps is less than 1
    """
    if steps < 1:
        raise ValueError(f"steps must be at least 1, got {steps}")
    if len(path.waypoints) < 2:
        return np.array([wp.position for wp in path.waypoints], dtype=np.float64).reshape(-1, 3)

    return np.array([
        interpolate_camera_path(path, i / steps, registry).position
        for i in range(steps + 1)
    ])


def generate_graph_points(
    path: CameraPath,
    points_per_segment: int = 50,
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> List[Tuple[float, float, int]]:
    """
    Eased timing curve of every segment in global coordinates.

    Returns:
        List of (global_time, global_eased_time, segment_index)

    Raises:
        ValueError: If points_per_segment is less than 1
    """
    if points_per_segment < 1:
        raise ValueError(f"points_per_segment must be at least 1, got {points_per_segment}")

    points = []
    for index, segment in enumerate(path.segments[:len(path.waypoints) - 1]):
        start = path.waypoints[index].time
        duration = path.waypoints[index + 1].time - start
        for i in range(points_per_segment + 1):
            local_t = i / points_per_segment
            eased = calculate_segment_output(segment, local_t, registry)
            points.append((start + local_t * duration, start + eased * duration, index))
    return points


def calculate_path_length(path: CameraPath) -> float:
    """Sum of the straight-line distances between consecutive waypoints"""
    if len(path.waypoints) < 2:
        return 0.0
    positions = np.array([wp.position for wp in path.waypoints])
    return float(np.linalg.norm(np.diff(positions, axis=0), axis=1).sum())
