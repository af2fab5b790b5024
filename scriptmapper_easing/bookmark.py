# (c) 2024 Niels Provos
#
# ScriptMapper bookmark JSON export and import.
#
# The JSON follows the Beat Saber v3 custom data layout that ScriptMapper
# reads: _pointDefinitions for the path points and one AssignPathAnimation
# custom event per segment carrying the segment's easing.
#

import json
import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .beats import normalized_to_beat
from .commands import format_as_script_mapper_short_command, parse_script_mapper_command
from .easing import EasingId
from .path import (
    CameraPath,
    CameraWaypoint,
    CoordinateSystem,
    create_waypoint,
    generate_segments_from_waypoints,
)

logger = logging.getLogger(__name__)

BOOKMARK_VERSION = "3.0.0"
PATH_ANIMATION_EVENT = "AssignPathAnimation"
LINEAR_EASING = "easeLinear"

# Beat Saber stores times with about six decimals
TIME_EPSILON = 1e-6

TIME_UNITS = ("seconds", "beats")


def times_are_equal(a: float, b: float, epsilon: float = TIME_EPSILON) -> bool:
    return abs(a - b) < epsilon


def time_is_less_than(a: float, b: float, epsilon: float = TIME_EPSILON) -> bool:
    return a < b - epsilon


def time_is_less_or_equal(a: float, b: float, epsilon: float = TIME_EPSILON) -> bool:
    return a <= b + epsilon


def round_time(time: float) -> float:
    """Round to the six decimals used in exports"""
    return round(time * 1e6) / 1e6


@dataclass
class ExportConfig:
    """Configuration for bookmark export"""
    track_name: str = "CameraPath"
    include_bookmarks: bool = True
    time_unit: str = "seconds"  # "seconds" or "beats"
    bookmark_color: Tuple[float, float, float, float] = (0.0, 0.8, 1.0, 1.0)

    def __post_init__(self):
        if self.time_unit not in TIME_UNITS:
            raise ValueError(f"time_unit must be one of {TIME_UNITS}, got {self.time_unit!r}")

    def to_dict(self) -> dict:
        return {
            "track_name": self.track_name,
            "include_bookmarks": self.include_bookmarks,
            "time_unit": self.time_unit,
            "bookmark_color": list(self.bookmark_color),
        }

    @staticmethod
    def from_dict(data: dict) -> "ExportConfig":
        return ExportConfig(
            track_name=data.get("track_name", "CameraPath"),
            include_bookmarks=data.get("include_bookmarks", True),
            time_unit=data.get("time_unit", "seconds"),
            bookmark_color=tuple(data.get("bookmark_color", (0.0, 0.8, 1.0, 1.0))),
        )


def _time_converter(path: CameraPath, config: ExportConfig):
    if config.time_unit == "beats":
        if not path.beat_duration:
            raise ValueError(f"Path {path.id} has no beat_duration, cannot export beats")
        return lambda t: round_time(normalized_to_beat(t, path.beat_duration, path.beat_offset or 0))

    total_seconds = path.total_duration / 1000
    return lambda t: round_time(t * total_seconds)


def _segment_easing(segment) -> str:
    if segment.raw_command:
        return segment.raw_command
    if not segment.easing_enabled:
        return LINEAR_EASING
    command = format_as_script_mapper_short_command(
        segment.function_id, segment.ease_type, segment.drift_params
    )
    return command if command is not None else LINEAR_EASING


def export_to_bookmark_json(path: CameraPath, config: Optional[ExportConfig] = None) -> dict:
    """
    Export a camera path to ScriptMapper bookmark JSON.

    Args:
        path: Camera path to export
        config: Export settings, defaults when omitted

    Returns:
        Dict ready for json.dumps
    """
    config = config or ExportConfig()
    to_time = _time_converter(path, config)

    points = [
        [*wp.position.tolist(), to_time(wp.time)]
        for wp in path.waypoints
    ]

    events = []
    for index, segment in enumerate(path.segments[:len(path.waypoints) - 1]):
        start = to_time(path.waypoints[index].time)
        end = to_time(path.waypoints[index + 1].time)
        events.append({
            "_time": start,
            "_type": PATH_ANIMATION_EVENT,
            "_data": {
                "_track": config.track_name,
                "_duration": round_time(end - start),
                "_easing": _segment_easing(segment),
            },
        })

    r, g, b, a = config.bookmark_color
    custom_data = {}
    if config.include_bookmarks:
        custom_data["_bookmarks"] = [
            {
                "_time": to_time(wp.time),
                "_name": wp.name if wp.name is not None else f"Waypoint {wp.id}",
                "_color": {"r": r, "g": g, "b": b, "a": a},
            }
            for wp in path.waypoints
        ]
    custom_data["_environment"] = []
    custom_data["_pointDefinitions"] = [{"_name": config.track_name, "_points": points}]
    custom_data["_customEvents"] = events

    return {"_version": BOOKMARK_VERSION, "_customData": custom_data}


def find_waypoint_at_time(
    waypoints: List[CameraWaypoint],
    target_time_seconds: float,
    total_duration: float,
) -> int:
    """
    Binary search for the waypoint at a time, within TIME_EPSILON.

    Args:
        waypoints: Waypoints sorted by time
        target_time_seconds: Time to look for
        total_duration: Path duration in seconds

    Returns:
        Index of the matching waypoint, -1 if there is none
    """
    target = target_time_seconds / total_duration if total_duration > 0 else 0.0

    low, high = 0, len(waypoints) - 1
    while low <= high:
        mid = (low + high) // 2
        wp_time = waypoints[mid].time
        if times_are_equal(wp_time, target):
            return mid
        if time_is_less_than(wp_time, target):
            low = mid + 1
        else:
            high = mid - 1
    return -1


def validate_point_ordering(waypoints: List[CameraWaypoint]) -> List[str]:
    errors = []
    for i in range(1, len(waypoints)):
        prev, curr = waypoints[i - 1], waypoints[i]
        if not time_is_less_than(prev.time, curr.time):
            errors.append(
                f"Waypoint times not strictly increasing: point {i - 1} (t={prev.time}) "
                f">= point {i} (t={curr.time})"
            )

    if waypoints:
        if waypoints[0].time < 0:
            errors.append(f"First waypoint has negative time: {waypoints[0].time}")
        if waypoints[-1].time > 1 + TIME_EPSILON:
            errors.append(f"Last waypoint exceeds normalized time 1.0: {waypoints[-1].time}")
    return errors


def validate_event_count(waypoints: List[CameraWaypoint], events: List[dict]) -> List[str]:
    """N waypoints need exactly N-1 events"""
    expected = max(0, len(waypoints) - 1)
    if len(events) != expected:
        return [
            f"Event count mismatch: expected {expected} events for "
            f"{len(waypoints)} waypoints, found {len(events)}"
        ]
    return []


def _event_end(event: dict) -> float:
    return event["_time"] + (event.get("_data") or {}).get("_duration", 0)


def validate_event_continuity(events: List[dict]) -> List[str]:
    """Report gaps and overlaps between consecutive events sorted by _time"""
    errors = []
    for i in range(1, len(events)):
        prev_end = _event_end(events[i - 1])
        start = events[i]["_time"]
        if time_is_less_than(prev_end, start):
            errors.append(
                f"Gap detected between events {i - 1} and {i}: "
                f"{start - prev_end:.6f}s gap at t={prev_end:.6f}s"
            )
        if time_is_less_than(start, prev_end):
            errors.append(
                f"Overlap detected between events {i - 1} and {i}: "
                f"{prev_end - start:.6f}s overlap at t={start:.6f}s"
            )
    return errors


def validate_segment_bookmark_correspondence(
    waypoints: List[CameraWaypoint],
    events: List[dict],
    total_duration: float,
) -> List[str]:
    """
    Check that every event spans exactly two consecutive waypoints.

    Args:
        waypoints: Waypoints sorted by time
        events: Custom events in any order
        total_duration: Path duration in seconds

    Returns:
        List of problems, empty when the events match the waypoints
    """
    errors = []
    errors.extend(validate_point_ordering(waypoints))
    errors.extend(validate_event_count(waypoints, events))

    sorted_events = sorted(events, key=lambda ev: ev["_time"])
    errors.extend(validate_event_continuity(sorted_events))

    for i, event in enumerate(sorted_events):
        start = event["_time"]
        end = _event_end(event)
        start_idx = find_waypoint_at_time(waypoints, start, total_duration)
        end_idx = find_waypoint_at_time(waypoints, end, total_duration)

        if start_idx == -1:
            errors.append(f"Event {i} start time {start:.6f}s has no matching waypoint")
        if end_idx == -1:
            errors.append(f"Event {i} end time {end:.6f}s has no matching waypoint")
        if start_idx != -1 and end_idx != -1 and end_idx != start_idx + 1:
            errors.append(
                f"Event {i} does not span consecutive waypoints: "
                f"spans from index {start_idx} to {end_idx}"
            )
    return errors


def import_from_bookmark_json(data: dict, default_bpm: float = 120) -> Optional[CameraPath]:
    """
    Rebuild a camera path from bookmark JSON.

    Point times are read as seconds. Easing is restored from the custom
    events, whose raw easing string is kept on the segment.

    Returns:
        The imported CameraPath, or None when the data is not usable
    """
    try:
        custom_data = data.get("_customData") or {}
        point_defs = custom_data.get("_pointDefinitions") or []
        if not point_defs:
            return None

        points = point_defs[0].get("_points") or []
        if len(points) < 2:
            return None

        track_name = point_defs[0].get("_name") or "ImportedPath"
        total_seconds = points[-1][3]
        bookmarks = custom_data.get("_bookmarks") or []

        waypoints = []
        for idx, (x, y, z, time_seconds) in enumerate(points):
            normalized = time_seconds / total_seconds if total_seconds > 0 else idx / (len(points) - 1)
            name = bookmarks[idx].get("_name") if idx < len(bookmarks) else None
            waypoints.append(create_waypoint(normalized, (x, y, z), name))

        segments = generate_segments_from_waypoints(waypoints)
        for segment, bookmark in zip(segments, bookmarks):
            if bookmark.get("_name"):
                segment.bookmark_commands = bookmark["_name"]

        for event in custom_data.get("_customEvents") or []:
            event_data = event.get("_data") or {}
            easing = event_data.get("_easing", LINEAR_EASING)
            start_idx = find_waypoint_at_time(waypoints, event["_time"], total_seconds)
            end_idx = find_waypoint_at_time(waypoints, _event_end(event), total_seconds)
            if start_idx == -1 or end_idx == -1 or start_idx >= len(segments):
                logger.debug(f"Skipping event at t={event['_time']}: no matching segment")
                continue

            segment = segments[start_idx]
            segment.raw_command = easing

            if easing in (LINEAR_EASING, "linear"):
                segment.easing_enabled = False
                continue

            parsed = parse_script_mapper_command(easing)
            if parsed is None:
                logger.debug(f"Unrecognised easing {easing!r} kept as raw command")
                continue

            segment.easing_enabled = True
            segment.function_id = parsed.function_id.value
            segment.ease_type = parsed.ease_type
            if parsed.function_id is EasingId.DRIFT and parsed.params is not None:
                segment.drift_params = parsed.params

        return CameraPath(
            id=f"imported-{uuid.uuid4().hex[:12]}",
            name=f"{track_name} (Imported)",
            waypoints=waypoints,
            segments=segments,
            total_duration=total_seconds * 1000,
            coordinate_system=CoordinateSystem.LEFT_HANDED,
            bpm=default_bpm,
        )
    except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
        logger.error(f"Failed to import bookmark JSON: {e}")
        return None


def validate_bookmark_structure(data) -> List[str]:
    """Shallow structure check of bookmark JSON before import"""
    if not isinstance(data, dict):
        return ["Invalid JSON: not an object"]

    errors = []
    if not data.get("_version"):
        errors.append("Missing _version field")

    custom_data = data.get("_customData")
    if not custom_data:
        errors.append("Missing _customData field")
        return errors

    point_defs = custom_data.get("_pointDefinitions")
    if not point_defs:
        errors.append("Missing or empty _pointDefinitions")
    elif len(point_defs[0].get("_points") or []) < 2:
        errors.append("Point definition must have at least 2 waypoints")

    if custom_data.get("_customEvents") is None:
        errors.append("Missing _customEvents array")
    return errors


def format_bookmark_json(bookmark: dict) -> str:
    """Pretty-printed JSON for copy and export"""
    return json.dumps(bookmark, indent=2, ensure_ascii=False)
